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
Contains `ondabuild.basetarget.BaseTarget`, whose methods such as `BaseTarget.option` and `BaseTarget.tags`
configure target instances in build files, and which is the base class for defining new targets.
"""

import os, re
import logging

import ondabuild.buildcontext
from ondabuild.buildcontext import getBuildInitializationContext
from ondabuild.utils.flatten import getStringList
from ondabuild.utils.buildfilelocation import BuildFileLocation
from ondabuild.utils.buildexceptions import BuildException
from ondabuild.utils.fileutils import deleteDir, deleteFile

# characters that cannot appear in file names on all platforms
_INVALID_PATH_CHARS = '<>:"|?*'

class BaseTarget(object):
	""" The base class for all targets.

	.. rubric:: Configuring targets in your build files

	.. autosummary ::
		option
		tags
		clearTags
		disableInFullBuild

	.. rubric:: Implementing a new target class

	Subclasses must implement `run`, and may override `clean`. They can use:

	.. autosummary ::
		registerImplicitInputOption
		registerImplicitInput
		getOption
		targetNameToUniqueId

	@param name: The unique name of this target, which is the path of the file or
		directory it creates. May contain ``${...}`` properties (e.g. ``${OUTPUT_DIR}/bin/onda.jar``),
		must use forward slashes, and must end with a slash if it is a directory.
		Relative names are relative to ``${OUTPUT_DIR}``.
	@param dependencies: any combination of strings, `ondabuild.pathsets`, targets and lists,
		which may contain unexpanded properties.
	"""

	def __init__(self, name, dependencies):
		for bad, description in [('//', 'double slashes'), ('\\', 'backslashes')]:
			if bad in name: raise BuildException('Invalid target name: %s are not permitted: %s'%(description, name))
		self.__name = name
		self.__tags = ['full']
		self.__dependencies = PathSet(dependencies)
		self.__path = None
		self.__workDir = None
		self.__optionOverrides = {}
		self.__options = None
		self.__implicitInputs = []
		self.log = logging.getLogger(self.type)

		init = getBuildInitializationContext()
		# no context when running doctests
		self.location = BuildFileLocation(raiseOnError=init is not None)
		if init: init.registerTarget(self)

	@property
	def name(self):
		""" The name of the target, containing unexpanded properties. """
		return self.__name

	@property
	def type(self):
		""" The target class name, e.g. ``Jar``. """
		return self.__class__.__name__

	@property
	def path(self):
		""" The resolved absolute path. Only available once the build has started. """
		if self.__path is None: raise Exception('Target path has not yet been resolved by this phase of the build process: %s'%self)
		return self.__path

	@property
	def options(self):
		""" The resolved options for this target. Only available once the build has started. """
		if self.__options is None: raise Exception('Cannot read target options while the build files are being loaded')
		return self.__options

	@property
	def workDir(self):
		""" A directory for this target's temporary files, deleted when it is cleaned. """
		return self.__workDir

	@property
	def baseDir(self):
		""" The directory of the build file that defined this target. """
		return self.location.buildDir

	def __hash__(self): return hash(self.__name)

	def __str__(self): return '<%s> %s'%(self.type, self.__name)

	def resolveToString(self, context):
		"""
		Resolves and returns the absolute path of this target. Called by the framework,
		and when a target is used as a dependency of another.
		"""
		if self.__path is None:
			# relative names go under OUTPUT_DIR so nothing is accidentally written to source dirs
			path = context.getFullPath(self.__name, context.getPropertyValue('OUTPUT_DIR'))
			# skipping any Windows drive letter
			badchars = sorted(set(c for c in path[2:] if c in _INVALID_PATH_CHARS))
			if badchars: raise BuildException('Invalid character(s) "%s" found in target name %s'%(''.join(badchars), path))
			self.log.debug('Resolved target name %s to canonical path %s', self.__name, path)
			self.__path = path
		return self.__path

	def _resolveTargetPath(self, context):
		""" Resolves the path, work dir and options. Called once by the scheduler before dependency resolution. """
		self.resolveToString(context)
		self.__workDir = os.path.normpath(os.path.join(context.getPropertyValue('BUILD_WORK_DIR'),
			'targets', self.type, targetNameToUniqueId(self.__name)))
		self.__options = context._globalOptions
		if self.__optionOverrides:
			self.__options = context._mergeListOfOptionDicts([self.__options, self.__optionOverrides], target=self)

	def _resolveUnderlyingDependencies(self, context):
		""" Resolves the dependencies of this target. Called once by the scheduler. """
		return self.__dependencies._resolveUnderlyingDependencies(context)

	def run(self, context: ondabuild.buildcontext.BuildContext):
		"""Builds the target. Called only when up-to-date checking shows the target
		must be built. All targets must implement this.
		"""
		raise NotImplementedError('run() is not implemented yet for this target')

	def clean(self, context: ondabuild.buildcontext.BuildContext):
		"""Deletes the target and its work dir. May be overridden to delete additional
		files.
		"""
		try:
			if self.workDir: deleteDir(self.workDir)
		finally:
			if os.path.isdir(self.path):
				self.log.info('Target clean is deleting directory: %s', self.path)
				deleteDir(self.path)
			else:
				deleteFile(self.path)

	def registerImplicitInputOption(self, optionKey):
		"""Adds the resolved value of an option (or of all options selected by a callable)
		to the implicit inputs of this target, so that changing it causes a rebuild.

		Call this from the target's constructor.

		@param optionKey: an option name, or a callable that takes an option name and
			returns True if it should be included, e.g.::

				self.registerImplicitInputOption(lambda optionKey: optionKey.startswith(('java.', 'javac.')))
		"""
		matches = optionKey if callable(optionKey) else (lambda key: key == optionKey)
		self.registerImplicitInput(lambda context: ['option %s=%s'%(k, _describeOptionValue(self.options[k]))
			for k in sorted(self.options) if matches(k)])

	def registerImplicitInput(self, item):
		"""Adds line(s) to the implicit inputs of this target.

		Implicit inputs are written to disk after the target builds successfully and
		compared on the next build, so that a change in properties or options causes a rebuild
		even if no dependency file has changed. Call this from the target's constructor.

		@param item: a string, which may contain ${...} properties, or a callable
			that takes the context and returns a string or list of strings (``None`` items are ignored)
		"""
		assert isinstance(item, str) or callable(item)
		self.__implicitInputs.append(item)

	def getHashableImplicitInputs(self, context):
		"""Returns the list of implicit input strings for this target.

		Subclasses may extend this, but calling `registerImplicitInput` from the
		constructor is usually simpler.
		"""
		result = []
		for item in self.__implicitInputs:
			value = item(context) if callable(item) else context.expandPropertyValues(item)
			if isinstance(value, str):
				result.append(value)
			elif value is not None:
				result.extend(v for v in value if v is not None)
		return result

	def getTags(self):
		""" Returns the list of tags associated with this target. """
		return self.__tags

	def disableInFullBuild(self):
		"""Stops this target from being built by a full build, so it is only built
		if named (or tagged) on the command line, or needed by another target.
		"""
		self.__tags.remove('full')
		getBuildInitializationContext().removeFromTags(self, ['full'])
		return self

	def clearTags(self):
		"""Removes all tags other than ``full`` from this target.
		"""
		init = getBuildInitializationContext()
		init.removeFromTags(self, [t for t in self.__tags if t != 'full'])
		self.__tags = [t for t in self.__tags if t == 'full']
		return self

	def getOption(self, key, errorIfNone=True, errorIfEmptyString=True):
		""" Returns the resolved value of an option for this target, raising a BuildException
		if it is None or an empty string (unless disabled). Only available during `run` or `clean`.
		"""
		if key not in self.options: raise Exception('Target tried to access an option key that does not exist: %s'%key)
		v = self.options[key]
		if (errorIfNone and v is None) or (errorIfEmptyString and v == ''):
			raise BuildException('This target requires a value to be specified for option "%s" (see basetarget.option or setGlobalOption)'%key)
		return v

	def option(self, key, value):
		"""Overrides the value of an option for this target only, taking precedence over
		`ondabuild.propertysupport.setGlobalOption` and the option's default.

		@param key: the name of a defined option
		@param value: the value; any ${...} properties in strings are expanded
		"""
		self.__optionOverrides[key] = value
		return self

	def tags(self, *tags: str):
		"""Adds one or more tags to this target, so a group of targets can be built by
		naming the tag on the command line.

		>>> BaseTarget('a',[]).tags('java').getTags()
		['java', 'full']
		>>> BaseTarget('a',[]).tags('java', 'jar').tags(['dist']).getTags()
		['dist', 'java', 'jar', 'full']
		"""
		taglist = getStringList(list(tags))
		self.__tags = taglist + self.__tags
		assert len(set(self.__tags)) == len(self.__tags), 'duplicate tags: %s'%self.__tags
		init = getBuildInitializationContext()
		if init: init.registerTags(self, taglist)
		return self

	@staticmethod
	def targetNameToUniqueId(name: str) -> str:
		"""Converts a target name (containing unexpanded properties) into an identifier
		suitable for temporary file and directory names.

		>>> BaseTarget.targetNameToUniqueId('${JAR_DIR}/${JAR_FILENAME}')
		'_JAR_DIR_._JAR_FILENAME_'
		>>> BaseTarget.targetNameToUniqueId('${OUTPUT_DIR}/classes/')
		'_OUTPUT_DIR_.classes'
		"""
		x = re.sub(r'[^()+./\w-]+','_', name.replace('\\','/').replace('${','_').replace('}','_').rstrip('/'))
		if len(x) < 256: x = x.replace('/','.')
		return x

targetNameToUniqueId = BaseTarget.targetNameToUniqueId

def _describeOptionValue(value):
	# a function's qualified name is stable across runs, its repr is not
	if callable(value) and hasattr(value, '__qualname__'): return value.__qualname__
	return repr(value)

from ondabuild.pathsets import PathSet
