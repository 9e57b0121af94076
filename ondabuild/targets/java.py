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
Contains targets for compiling and packaging Java applications.

The main target in this module is `ondabuild.targets.java.Jar`.

The directory containing the JDK is identified by the option ``java.home``; if it is
not set, ``javac`` is found on the ``PATH``.
"""
import os

from ondabuild.buildcommon import *
from ondabuild.basetarget import BaseTarget, targetNameToUniqueId
from ondabuild.buildcontext import getBuildInitializationContext
from ondabuild.propertysupport import defineOption
from ondabuild.pathsets import PathSet, FilteredPathSet, FindPaths
from ondabuild.utils.fileutils import mkdir, deleteDir, openForWrite, containsFiles
from ondabuild.utils.buildfilelocation import BuildFileLocation
from ondabuild.utils.java import jar, javac, create_manifest
from ondabuild.utils.flatten import flatten
from ondabuild.utils.buildexceptions import BuildException

# Options specific to these targets
defineOption('jar.manifest.classpathAppend', [])
defineOption('javac.logs', '${BUILD_WORK_DIR}/javac_logs')

def _isJavaFile(p): return p.lower().endswith('.java')

def _isJavaOrJdkOption(key): return key.startswith(('javac.', 'jar.')) or key == 'java.home'

class _JavaTarget(BaseTarget):
	""" Compilation support shared by `Javac` and `Jar`. """

	def __init__(self, name, compile, classpath, sourcepath, extraDependencies):
		self.compile = FilteredPathSet(_isJavaFile, PathSet(compile)) if compile else None
		self.classpath = PathSet(classpath)

		# forward slashes and a trailing slash, as FindPaths requires
		self.sourcepath = []
		for d in flatten(sourcepath):
			d = d.replace(os.sep, '/')
			self.sourcepath.append(d if d.endswith('/') else d+'/')

		# the shared sources are compiled on demand by javac, so any change to them must cause a rebuild;
		# javac accepts a sourcepath dir that is missing or has no sources, so that is not an error here
		init = getBuildInitializationContext()
		sourcepathSources = [FindPaths(d, includes='**/*.java') for d in self.sourcepath
			if not init or containsFiles(init.getFullPath(d, BuildFileLocation(raiseOnError=True)), '.java')]

		BaseTarget.__init__(self, name, [self.compile, self.classpath, sourcepathSources]+extraDependencies)

		self.registerImplicitInput(lambda context: 'classpath = '+context.expandPropertyValues(str(self.classpath)))
		self.registerImplicitInput(lambda context: 'sourcepath = '+os.pathsep.join(self._resolveSourcepath(context)))
		self.registerImplicitInputOption(_isJavaOrJdkOption)

	def _resolveSourcepath(self, context):
		""" Returns the absolute sourcepath dirs, from this target followed by the ``javac.sourcepath`` option. """
		return [context.getFullPath(d, self.baseDir).rstrip('\\/')
			for d in self.sourcepath+flatten(self.options['javac.sourcepath'])]

	def _compile(self, context, output):
		# sorted within each PathSet for determinism, but keeping the order of the PathSets
		classpath = os.pathsep.join(self.classpath.resolve(context))
		logs = context.getFullPath(self.getOption('javac.logs'), self.baseDir)
		mkdir(logs)
		javac(output, self.compile.resolve(context), classpath, options=self.options,
			logbasename=logs+'/'+targetNameToUniqueId(self.name), targetname=self.name, workDir=self.workDir,
			sourcepath=self._resolveSourcepath(context))

class Javac(_JavaTarget):
	""" Compiles Java classes to a directory, without creating a ``.jar``.

	The following options can be set with ``Javac(...).option(key, value)``
	or `ondabuild.propertysupport.setGlobalOption()` to customize compilation:

		- ``javac.source = ""`` The language level of the ``.java`` files, e.g. ``1.8``.
		- ``javac.target = ""`` The ``.class`` file compatibility level.
		- ``javac.encoding = "UTF-8"`` The character encoding of the ``.java`` files.
		- ``javac.debug = False`` Include debug information in the ``.class`` files.
		- ``javac.warningsAsErrors = False`` Fail the build if there are any warnings.
		- ``javac.options = []`` Extra arguments for ``javac``.
		- ``javac.sourcepath = []`` Extra directories to search for source files.
		- ``javac.logs = "${BUILD_WORK_DIR}/javac_logs"`` Where the output of ``javac`` is written.
		- ``javac.outputHandlerFactory = JavacProcessOutputHandler`` The class that parses ``javac`` output.
	"""
	def __init__(self, output, compile, classpath, sourcepath=None):
		"""
		@param output: the output directory for class files, ending with a slash

		@param compile: PathSet (or list) of the things to compile

		@param classpath: PathSet (or list) of the things to compile against

		@param sourcepath: a directory (or list of directories) containing other source files
			that the compiled classes use, for example a shared module; javac compiles any of
			these that are referenced.
		"""
		_JavaTarget.__init__(self, output, compile, classpath, sourcepath, [])

	def run(self, context):
		# start clean so deleted sources do not leave stale classes behind
		deleteDir(self.path)
		mkdir(self.path)
		self._compile(context, self.path)

class Jar(_JavaTarget):
	""" Creates a jar, first compiling some Java classes, then packing them up with a
	manifest and any other files.

	Example usage::

		Jar('${JAR_DIR}/onda.jar',
			compile=FindPaths('src/main/java/', includes='**/*.java'),
			classpath=[],
			sourcepath='${COMMON_SOURCE_DIR}',
			manifest={'Application-Name':'${PROJECT_NAME}', 'Main-Class':'${MAIN_CLASS}'},
			package=FindPaths('src/main/resources/'),
		)

	In addition to the options listed on the `Javac` target, these can be set
	using ``Jar(...).option(key, value)`` or `ondabuild.propertysupport.setGlobalOption()`:

		- ``jar.manifest.defaults = {}`` Entries to include in the ``MANIFEST.MF`` of every jar.
		- ``jar.manifest.classpathAppend = []`` Extra ``Class-Path`` manifest entries, for things that are
		  needed at runtime but not when compiling.
	"""
	def __init__(self, jar, compile, classpath, manifest, package=None, sourcepath=None):
		"""
		@param jar: path of the jar to create

		@param compile: PathSet (or list) of things to compile, or None if there is nothing to compile

		@param classpath: PathSet (or list) of things to compile against; the destination of each
			item is used in the ``Class-Path`` manifest entry

		@param manifest: a dictionary of ``MANIFEST.MF`` entries (which may be empty), whose values can
			contain properties, e.g.::

				manifest={'Main-Class':'${MAIN_CLASS}'}

			Alternatively, a string giving the path of a manifest file to use as-is, or ``None``
			for no manifest, producing a plain zip

		@param package: PathSet (or list) of other files to include in the jar; the destination
			of each item is its path inside the jar

		@param sourcepath: a directory (or list of directories) containing other source files
			that the compiled classes use; javac compiles any that are referenced into the jar
		"""
		self.package = PathSet(package)
		self.manifest = manifest
		_JavaTarget.__init__(self, jar, compile, classpath, sourcepath,
			[self.package, manifest if isinstance(manifest, str) else None])
		self.registerImplicitInput(lambda context: 'manifest = '+context.expandPropertyValues(str(self.manifest)))

	def _generateManifest(self, context, manifest):
		""" Writes a manifest from the entries passed to the constructor and the classpath. """
		entries = {}
		for k in self.manifest:
			entries[k] = context.expandPropertyValues(self.manifest[k])

		if not any(k.lower() == 'class-path' for k in entries):
			classpathAppend = self.options['jar.manifest.classpathAppend']
			if not isinstance(classpathAppend, list):
				raise BuildException('Option jar.manifest.classpathAppend must be a list, not %r'%(classpathAppend,))
			classpath = [dest for src, dest in self.classpath.resolveWithDestinations(context)]+classpathAppend
			# manifest entries must always use / separators
			classpath = [p.replace(os.sep, '/').replace('\\', '/') for p in classpath if p]
			if classpath:
				entries['Class-Path'] = ' '.join(classpath)

		create_manifest(manifest, entries, options=self.options)
		self.log.info('Generated manifest for %s: %s', self.name, ', '.join('%s=%s'%(k, entries[k]) for k in sorted(entries)))

	def run(self, context):
		mkdir(self.workDir)

		classes = os.path.join(self.workDir, 'classes')
		deleteDir(classes)
		mkdir(classes)
		if self.compile:
			self._compile(context, classes)

		if isinstance(self.manifest, str):
			manifest = context.getFullPath(self.manifest, self.baseDir)
		elif self.manifest is None:
			manifest = None
		else:
			manifest = os.path.join(self.workDir, 'MANIFEST.MF')
			self._generateManifest(context, manifest)

		for (src, dest) in self.package.resolveWithDestinations(context):
			if '..' in dest: raise BuildException('Packaged destination paths must not contain "..": %s'%dest)
			destpath = os.path.join(classes, dest)
			if os.path.isdir(src):
				mkdir(destpath)
			else:
				mkdir(os.path.dirname(destpath))
				with open(src, 'rb') as s:
					with openForWrite(destpath, 'wb') as d:
						d.write(s.read())

		jar(self.path, manifest, classes, options=self.options)
