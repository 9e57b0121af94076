# ondabuild - property-driven Python build tool for Java projects
#
# Copyright (c) 2013 - 2017, 2019 Software AG, Darmstadt, Germany and/or its licensors
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.
#

"""
Contexts providing property values and options, first while build files are
loaded (`BuildInitializationContext`) and then while targets are built (`BuildContext`).
"""

import sys, os, time, traceback, types
import re

from ondabuild.utils.buildfilelocation import BuildFileLocation
from ondabuild.utils.buildexceptions import BuildException
from ondabuild.utils.consoleformatter import publishArtifact
from ondabuild.utils.fileutils import isDirPath, normPath

import logging
log = logging.getLogger('ondabuild')

_ESCAPED_PLACEHOLDER = '<escaped_ondabuild_placeholder>'

class BaseContext(object):
	""" Functionality shared by the initialization and build phases.
	"""

	def __init__(self, initialProperties=None):
		"""
		@param initialProperties: a dictionary of initial property values; used by doctests.
		"""
		self._properties = dict(initialProperties or {})

	def publishArtifact(self, displayName, path):
		""" Publishes a local path (such as a compiler error log) as an artifact of the build.

		Equivalent to `ondabuild.utils.consoleformatter.publishArtifact`.
		"""
		publishArtifact(displayName, path)

	def getPropertyValue(self, name):
		""" Get the value of the specified property or raise a BuildException if it doesn't exist.

		@param name: the property name, without ${...}

		@return: a bool for boolean properties, otherwise a string

		>>> BaseContext({'PACKAGE_NAME':'onda'}).getPropertyValue('PACKAGE_NAME')
		'onda'
		>>> BaseContext({'A':False}).getPropertyValue('A')
		False
		>>> BaseContext({'A':'b'}).getPropertyValue('UNDEFINED_PROPERTY')
		Traceback (most recent call last):
		...
		ondabuild.utils.buildexceptions.BuildException: Property "UNDEFINED_PROPERTY" is not defined
		"""
		result = self._properties.get(name)
		if result is None:
			# special properties are only defined when first needed, so build files can define them first
			init = BuildInitializationContext._current()
			if init is None or name not in _SPECIAL_PROPERTIES:
				raise BuildException('Property "%s" is not defined'%name)
			_SPECIAL_PROPERTIES[name](init)
			result = init._properties[name]
		return result

	def expandPropertyValues(self, string, expandList=False):
		""" Expand all ${PROP_NAME} properties in the specified string.

		A double dollar escapes a property reference, so "$${foo}" becomes "${foo}".
		Booleans are expanded to "true" or "false".

		@param string: the string to expand, or a function taking the context and returning one

		@param expandList: return a list instead of a string, expanding exactly one
		``${NAME[]}`` list property into multiple items

		>>> BaseContext({'PACKAGE_NAME':'onda'}).expandPropertyValues('uk.blankaspect.${PACKAGE_NAME}.App')
		'uk.blankaspect.onda.App'
		>>> BaseContext({'A':'a'}).expandPropertyValues('x${A}x$${A}x')
		'xax${A}x'
		>>> BaseContext({'DEBUG':True}).expandPropertyValues('-g=${DEBUG}')
		'-g=true'
		>>> BaseContext({'DIR':'lib', 'JARS[]':'a, b', 'SUFFIX':'.jar'}).expandPropertyValues('${DIR}/${JARS[]}${SUFFIX}', expandList=True)
		['lib/a.jar', 'lib/b.jar']
		>>> BaseContext({'A':''}).expandPropertyValues('${A}', expandList=True)
		[]
		>>> BaseContext({}).expandPropertyValues(None)
		>>> BaseContext({'A':'b'}).expandPropertyValues('${A')
		Traceback (most recent call last):
		...
		ondabuild.utils.buildexceptions.BuildException: Incorrectly formatted property string "${A"
		>>> BaseContext({'A[]':'a, b'}).expandPropertyValues('${A[]}${A[]}', expandList=True)
		Traceback (most recent call last):
		...
		ondabuild.utils.buildexceptions.BuildException: Cannot expand as a list a string containing multiple list variables
		"""
		if not string: return [] if expandList else string
		if callable(string): string = string(self)
		assert isinstance(string, str), 'Error in expandPropertyValues: expecting string but argument was of type "%s"'%(string.__class__.__name__)

		string = string.replace('$${', _ESCAPED_PLACEHOLDER)

		prefix, listPropName = None, None
		while '${' in string:
			start = string.index('${')
			end = string.find('}', start)
			if end < 0: raise BuildException('Incorrectly formatted property string "%s"'%string.replace(_ESCAPED_PLACEHOLDER, '$${'))
			propName = string[start+2:end]
			if expandList and propName.endswith('[]'):
				if listPropName: raise BuildException('Cannot expand as a list a string containing multiple list variables')
				prefix, listPropName = string[:start], propName
				string = string[end+1:]
				continue
			value = self.getPropertyValue(propName)
			if isinstance(value, bool): value = 'true' if value else 'false'
			string = string.replace('${%s}'%propName, value)

		if listPropName:
			result = []
			for item in self.expandListPropertyValue(listPropName):
				for expanded in self.expandPropertyValues(item, expandList=True):
					result.append((prefix+expanded+string).replace(_ESCAPED_PLACEHOLDER, '${'))
			return result

		string = string.replace(_ESCAPED_PLACEHOLDER, '${')
		if expandList:
			return [string] if string else []
		return string

	def expandListPropertyValue(self, propertyName):
		""" Returns the items of a comma-separated list property, whose name must end with "[]".

		>>> BaseContext({'JARS[]':'a.jar , b.jar'}).expandListPropertyValue('JARS[]')
		['a.jar', 'b.jar']
		"""
		assert propertyName.endswith('[]'), propertyName
		return [s.strip() for s in self.getPropertyValue(propertyName).split(',')]

	def getProperties(self):
		"""
		Returns a copy of the properties dictionary.

		>>> BaseContext({'A':'b'}).getProperties()
		{'A': 'b'}
		"""
		return self._properties.copy()

	def _recursiveExpandProperties(self, obj):
		"""
		Expands properties in any strings inside obj, which may be nested lists, tuples and dicts.

		>>> BaseContext({'P':'onda'})._recursiveExpandProperties({'Application-Name':'${P}', 'x':['${P}', ('${P}', 1)]})
		{'Application-Name': 'onda', 'x': ['onda', ('onda', 1)]}
		"""
		if isinstance(obj, str):
			return self.expandPropertyValues(obj)
		elif isinstance(obj, (list, tuple)):
			return type(obj)(self._recursiveExpandProperties(i) for i in obj)
		elif isinstance(obj, dict):
			return {self._recursiveExpandProperties(k): self._recursiveExpandProperties(v) for k, v in obj.items()}
		return obj

	def _mergeListOfOptionDicts(self, dicts, target=None):
		options = {}
		for source in dicts:
			if not source: continue
			for key in source:
				if key not in BuildInitializationContext._definedOptions:
					raise BuildException('Unknown option %s'%key, location=target.location if target else None)
				try:
					options[key] = self._recursiveExpandProperties(source[key])
				except BuildException:
					raise BuildException('Failed to resolve option "%s"'%key, location=target.location if target else None, causedBy=True)
		return options

	def mergeOptions(self, target=None):
		""" Returns the option defaults, overridden by any global values and then by
		any values set on the target.

		Targets should normally use their own ``self.options`` instead.
		"""
		if target is None:
			return self._mergeListOfOptionDicts([BuildInitializationContext._definedOptions, self._globalOptions])
		return dict(target.options)

	def getGlobalOption(self, key):
		"""Get the value of the specified global option for this build.

		Where there is a target, use its ``options`` instead so per-target overrides are respected.
		"""
		return self._globalOptions[key]

	def getFullPath(self, path, defaultDir, expandList=False):
		""" Expands properties in the path, makes it absolute using defaultDir if it is
		relative, and normalizes it. A trailing slash is preserved (as os.sep).

		@param path: a relative or absolute path

		@param defaultDir: the directory that relative paths are relative to; a string
		(which may contain properties) or a BuildFileLocation

		@param expandList: expand a ``${NAME[]}`` list property, returning a list of paths

		>>> BaseContext({'OUT':'/build', 'F':'onda.jar'}).getFullPath('bin/${F}', '${OUT}').replace('\\\\','/').endswith('/build/bin/onda.jar')
		True
		>>> BaseContext({'OUT':'/build/'}).getFullPath('bin/../classes/', '${OUT}').replace('\\\\','/').endswith('/build/classes/')
		True
		"""
		assert defaultDir

		def resolve(p, orig):
			isDir = isDirPath(p)
			if len(p) == 0 or (isDir and len(p)==1): raise BuildException('Invalid path "%s" expanded from "%s"'%(p, orig))
			if not os.path.isabs(p):
				parent = defaultDir
				if isinstance(parent, BuildFileLocation):
					parent = parent.buildDir
					if not parent: raise Exception(
						'Cannot resolve relative path \'%s\' because the build file location is not available; use an absolute path or create the object while build files are loaded'%p)
				else:
					parent = self.expandPropertyValues(parent)
				p = os.path.join(parent, p)
			p = normPath(p.rstrip('\\/'))
			return p+os.sep if isDir else p

		if expandList:
			return [resolve(p, path) for p in self.expandPropertyValues(path, expandList=True)]
		return resolve(self.expandPropertyValues(path), path)

def _rootRelativePath(init):
	# relative values mean the same wherever ondabuild is run from
	def coerce(value):
		value = init.expandPropertyValues(value)
		return normPath(os.path.join(init._rootDir, value)).rstrip('\\/')
	return coerce

def _defineOutputDir(init):
	init.registerOutputDir(init.defineProperty('OUTPUT_DIR', 'build', coerceToValidValue=_rootRelativePath(init)))

_SPECIAL_PROPERTIES = {
	# each one is defined on first use unless the build file defines it
	'OUTPUT_DIR': _defineOutputDir,
	'BUILD_MODE': lambda init: init.defineProperty('BUILD_MODE', 'release'),
	'BUILD_NUMBER': lambda init: init.defineProperty('BUILD_NUMBER', str(int(time.time()))),
	'BUILD_WORK_DIR': lambda init: init.defineProperty('BUILD_WORK_DIR', '${OUTPUT_DIR}/BUILD_WORK',
		coerceToValidValue=_rootRelativePath(init)),
	'LOG_FILE': lambda init: init.defineProperty('LOG_FILE', os.path.abspath('build.log')),
	'PROJECT_NAME': lambda init: init.defineProperty('PROJECT_NAME', os.path.basename(init._rootDir)),
}

class BuildInitializationContext(BaseContext):
	"""
	The context used while build files are loaded, which is the only time properties
	can be defined, options set and targets registered.
	"""

	# class-level so option definitions in already-imported target modules survive a reload of the build file
	_definedOptions = {}

	__instance = None

	def __init__(self, propertyOverrides):
		"""
		@param propertyOverrides: property values from the command line; all values are strings
		"""
		BaseContext.__init__(self)
		self._propertyOverrides = dict(propertyOverrides)
		self._envPropertyOverrides = {}
		self._targetsMap = {}
		self._targetsList = []
		self._tags = {}
		self._outputDirs = set()
		self._globalOptions = {}
		self._initializationCompleted = False
		self._rootDir = None
		self.__isRealBuild = True

	@staticmethod
	def _current():
		inst = BuildInitializationContext.__instance
		return inst if isinstance(inst, BuildInitializationContext) else None

	@staticmethod
	def getBuildInitializationContext():
		"""Returns the singleton `BuildInitializationContext` while build files are being loaded.

		It is an error to call this once the build has started; targets receive a `BuildContext` instead.
		"""
		assert BuildInitializationContext.__instance != 'build phase', 'cannot use this method once the build has started, use context argument instead'
		return BuildInitializationContext.__instance

	def initializeFromBuildFile(self, buildFile, isRealBuild=True):
		""" Loads the build file, which defines properties and registers targets with this context.

		@param buildFile: the build file to load, or a directory containing ``root.ondabuild.py``
		@param isRealBuild: False if the build files are only being loaded to list targets etc
		"""
		self.__isRealBuild = isRealBuild
		if os.path.isdir(buildFile): buildFile = os.path.join(buildFile, 'root.ondabuild.py')
		buildFile = os.path.abspath(buildFile)
		if not os.path.isfile(buildFile): raise BuildException('Cannot find build file "%s"'%buildFile)
		self._rootDir = os.path.dirname(buildFile)

		startTime = time.time()
		BuildInitializationContext.__instance = self
		try:
			execBuildFile(buildFile)
		except BuildException as e:
			log.error('Failed to load build file: %s', e.toSingleLineString(None), extra=e.getLoggerExtraArgDict())
			log.debug('Failed to load build file: %s', traceback.format_exc())
			raise
		except Exception as e:
			# syntax errors are reported at the offending line rather than in the loader
			extra = {'ondabuild_filename':e.filename, 'ondabuild_line':e.lineno} if isinstance(e, SyntaxError) else None
			log.exception('Failed to load build file: ', extra=extra)
			raise BuildException('Failed to load build file', causedBy=True)
		log.info('Loaded build files in %0.1f seconds', time.time()-startTime)

		for p in _SPECIAL_PROPERTIES:
			self.getPropertyValue(p)

		# ensure the options this module defines exist before the build phase
		import ondabuild.utils.outputhandler

		BuildInitializationContext.__instance = 'build phase'
		self._initializationCompleted = True

		# anything left was never defined
		if self._propertyOverrides:
			raise BuildException('Cannot specify value for undefined build property/properties: %s'%(', '.join(sorted(self._propertyOverrides))))

	def _finalizeGlobalOptions(self):
		self._globalOptions = types.MappingProxyType(self._mergeListOfOptionDicts([
			BuildInitializationContext._definedOptions, self._globalOptions]))

	def _initializationCheck(self):
		if self._initializationCompleted: raise Exception('Cannot invoke this method now that the initialization phase is over')

	def enableEnvironmentPropertyOverrides(self, prefix):
		""" Allows properties to be overridden by environment variables named prefix+PROPERTY_NAME. """
		if not prefix or not prefix.strip():
			raise BuildException('It is mandatory to specify a prefix for enableEnvironmentPropertyOverrides')
		for k, v in os.environ.items():
			if k.startswith(prefix):
				self._envPropertyOverrides[k[len(prefix):]] = v

	def defineProperty(self, name, default, coerceToValidValue=None, debug=False):
		""" Defines a property, returning the value assigned to it.

		The value comes from the command line if specified there, otherwise from the
		environment (if enabled), otherwise from the default.

		Build files should use `ondabuild.propertysupport.defineStringProperty` et al instead.

		@param name: must be UPPER_CASE
		@param default: the default value, which is not expanded. If None the property must
		be set on the command line.
		@param coerceToValidValue: None, or a function to validate and/or convert the value
		@param debug: if True log at DEBUG else log at INFO
		"""
		self._initializationCheck()
		if name.upper() != name:
			raise BuildException('Invalid property name "%s" - all property names must be upper case'%name)
		if name in self._properties:
			raise BuildException('Cannot set the value of property "%s" more than once'%name)

		# command line, then environment, then the build file's default
		if name in self._propertyOverrides:
			value = self._propertyOverrides.pop(name)
		elif name in self._envPropertyOverrides:
			value = self._envPropertyOverrides[name]
			log.critical('Overriding property value from environment: %s=%s', name, value)
		elif default is not None:
			value = default
		else:
			raise BuildException('Property "%s" must be set on the command line'%name)

		self._properties[name] = coerceToValidValue(value) if coerceToValidValue else value
		value = self._properties[name]

		(log.debug if debug else log.info)('Setting property %s=%s', name, value)
		return value

	def registerOutputDir(self, outputDir):
		""" Registers a directory which is created before the build starts and deleted by a clean.

		Build files should use `ondabuild.propertysupport.defineOutputDirProperty` instead.
		"""
		self._initializationCheck()
		self._outputDirs.add(outputDir)

	def registerTarget(self, target):
		""" Registers a target with the context. Called by the `ondabuild.basetarget.BaseTarget` constructor. """
		self._initializationCheck()
		if target.name in self._targetsMap:
			raise BuildException('Duplicate target name "%s" (%s)' % (target, self._targetsMap[target.name].location), location=target.location)
		self._targetsMap[target.name] = target
		self._targetsList.append(target)
		self.registerTags(target, target.getTags())

	def registerTags(self, target, taglist):
		for t in taglist:
			self._tags.setdefault(t, []).append(target)

	def removeFromTags(self, target, taglist):
		for t in taglist:
			self._tags[t] = [x for x in self._tags[t] if x.name != target.name]

	def isRealBuild(self):
		""" Returns False if the build files are only being loaded to list targets, properties or options. """
		return self.__isRealBuild

	def getTargetsWithTag(self, tag):
		""" Returns the targets with the specified tag, or raises BuildException if there are none. """
		result = list(self._tags.get(tag, []))
		if not result:
			raise BuildException('Tag "%s" is not defined for any target in the build'%tag)
		return result

	def tags(self):
		""" Returns the map of tag names to lists of targets. """
		return self._tags

	def targets(self):
		""" Returns the map of target names to targets. """
		return self._targetsMap

	def getOutputDirs(self):
		""" Returns the registered output dirs, some of which may be nested inside others. """
		return self._outputDirs

	@staticmethod
	def _defineOption(name, default):
		if name in BuildInitializationContext._definedOptions and BuildInitializationContext._definedOptions[name] != default:
			raise BuildException('Cannot define option "%s" more than once'%name)
		BuildInitializationContext._definedOptions[name] = default

	def setGlobalOption(self, key, value):
		if key not in BuildInitializationContext._definedOptions:
			raise BuildException('Cannot specify value for option that has not been defined "%s"'%key)
		(log.warning if key in self._globalOptions else log.info)('Setting global option %s to %s at %s', key, value, BuildFileLocation())
		self._globalOptions[key] = value

class BuildContext(BaseContext):
	"""
	The read-only context passed to targets while the build runs.
	"""
	def __init__(self, initializationContext, targetPaths=None):
		BaseContext.__init__(self, initializationContext.getProperties())
		self.init = initializationContext
		self._globalOptions = initializationContext._globalOptions
		self.__targetPaths = targetPaths or set()

		# only the top-level dirs matter; nested output dirs are inside them anyway
		outputDirs = sorted(o.rstrip('\\/') for o in initializationContext.getOutputDirs())
		topLevel = [o for o in outputDirs if not any(o.startswith(parent+os.sep) for parent in outputDirs)]
		self.__topLevelOutputDirs = [o+os.sep for o in topLevel]
		self.__outputDirsRegex = re.compile('|'.join(re.escape(o) for o in self.__topLevelOutputDirs),
			flags=re.IGNORECASE if os.sep == '\\' else 0)

	def isPathWithinOutputDir(self, path):
		""" Returns true if the normalized absolute path is inside one of this build's output directories. """
		return bool(self.__topLevelOutputDirs) and self.__outputDirsRegex.match(path) is not None

	def _getTopLevelOutputDirs(self):
		return self.__topLevelOutputDirs

	def getTargetsWithTag(self, tag):
		return self.init.getTargetsWithTag(tag)

	def _getTargetPathsWithinDir(self, parentDir):
		""" Yields the resolved paths of all targets inside the specified directory (which must end with a slash). """
		if not isDirPath(parentDir): raise BuildException('Directory paths must have a trailing slash: "%s"'%parentDir)
		for path in self.__targetPaths:
			if path.startswith(parentDir) and path != parentDir:
				yield path

	def _isValidTarget(self, target):
		""" Returns True if the target object, name or resolved path is a known target. """
		if hasattr(target, 'name'):
			return target.name in self.init.targets()
		target = str(target)
		return target in self.init.targets() or target in self.__targetPaths

getBuildInitializationContext = BuildInitializationContext.getBuildInitializationContext

def execBuildFile(path):
	""" Executes a build file in a new namespace, which is returned.

	While it runs, `ondabuild.utils.buildfilelocation.BuildFileLocation` reports locations within this file,
	and relative paths are resolved against its directory.
	"""
	BuildFileLocation._currentBuildFile.append(path)
	try:
		namespace = {}
		with open(path, 'rb') as f:
			exec(compile(f.read(), path, 'exec'), namespace, namespace)
		return namespace
	finally:
		BuildFileLocation._currentBuildFile.pop()
