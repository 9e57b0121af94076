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
PathSets describe the inputs of targets: sets of source paths, each paired with the
relative destination it should have in the output (e.g. its location inside a jar).

.. autosummary::
	PathSet
	DirBasedPathSet
	FindPaths
	FilteredPathSet
"""

import os
import logging
import time

from ondabuild.utils.antglob import GlobPatternSet, GlobUnusedPatternTracker
from ondabuild.utils.flatten import flatten
from ondabuild.utils.buildfilelocation import BuildFileLocation
from ondabuild.utils.buildexceptions import BuildException
from ondabuild.buildcommon import isDirPath, normpath
from ondabuild.buildcontext import BaseContext

# don't define a 'log' variable here or targets will use it by mistake when importing this file

class BasePathSet(object):
	""" Base class for PathSet implementations.
	"""

	def __repr__(self):
		raise NotImplementedError('__repr__ is not implemented for %s'%self.__class__)

	def resolve(self, context):
		""" Returns the normalized absolute source paths of this pathset, with
		OS-dependent slashes. Directory paths end with a slash.
		"""
		return [src for (src, dest) in self.resolveWithDestinations(context)]

	def resolveWithDestinations(self, context):
		""" Returns a list of (srcabs, destrel) pairs: the normalized absolute
		source path, and the relative destination path of each item (which targets
		such as `ondabuild.targets.java.Jar` use as the path inside the archive).

		Directory paths end with a slash. May raise BuildException.
		"""
		raise NotImplementedError('resolveWithDestinations is not implemented for %s'%self.__class__)

	def _resolveUnderlyingDependencies(self, context):
		""" Returns an iterable of (abspath, pathset) pairs for the paths this pathset
		depends on, for use by the scheduler during dependency checking.
		"""
		raise NotImplementedError('_resolveUnderlyingDependencies is not implemented for %s'%self.__class__)

class _SimplePathSet(BasePathSet):
	""" Holds any combination of path strings, targets and other PathSets.
	"""
	def __init__(self, *inputs):
		self.contents = flatten(inputs)
		for x in self.contents:
			if not (isinstance(x, (str, BasePathSet)) or hasattr(x, 'resolveToString')):
				raise BuildException('PathSet may contain only strings, PathSets, targets and lists - cannot accept %s (%s)'%(x, x.__class__))
		self.__location = BuildFileLocation()

	def __repr__(self):
		return 'PathSet(%s)' % ', '.join('"%s"'%s.replace('\\','/') if isinstance(s, str) else str(s) for s in self.contents)

	def __resolveStringPath(self, p, context):
		if hasattr(p, 'resolveToString'):
			p = p.resolveToString(context)
		paths = context.getFullPath(p, defaultDir=self.__location, expandList=True)
		for x in paths:
			if '*' in x:
				raise BuildException('Cannot specify "*" glob patterns here (consider using FindPaths instead): "%s"'%x, location=self.__location)
		# absolutely specified items have flat destinations
		return [(x, os.path.basename(x.rstrip('\\/'))+(os.sep if isDirPath(x) else '')) for x in paths]

	def resolveWithDestinations(self, context):
		result = []
		for x in self.contents:
			if isinstance(x, BasePathSet):
				result.extend(x.resolveWithDestinations(context))
			else:
				result.extend(self.__resolveStringPath(x, context))
		return result

	def _resolveUnderlyingDependencies(self, context):
		for x in self.contents:
			if isinstance(x, BasePathSet):
				yield from x._resolveUnderlyingDependencies(context)
			else:
				for path, _ in self.__resolveStringPath(x, context):
					yield path, self

NULL_PATH_SET = _SimplePathSet()
"""
A singleton PathSet containing no items.
"""

def PathSet(*items):
	"""Creates a PathSet containing the specified strings, targets and/or other PathSets,
	nested as deeply as you like within lists and tuples.

	Relative paths are relative to the build file where the PathSet is created.
	Paths may not contain ``*``, and directory paths must end with an explicit ``/``.

	>>> str(PathSet('lib/a.jar', ['classes/', PathSet('b.jar')]).resolveWithDestinations(BaseContext({}))).replace('\\\\\\\\','/')
	"[('BUILD_DIR/lib/a.jar', 'a.jar'), ('BUILD_DIR/classes/', 'classes/'), ('BUILD_DIR/b.jar', 'b.jar')]"

	>>> str(PathSet('lib/a.jar', ['classes/', PathSet('b.jar')]))
	'PathSet("lib/a.jar", "classes/", PathSet("b.jar"))'

	>>> PathSet('a/*').resolve(BaseContext({})) #doctest: +IGNORE_EXCEPTION_DETAIL
	Traceback (most recent call last):
	...
	ondabuild.utils.buildexceptions.BuildException:
	"""
	items = [i for i in flatten(items) if i is not NULL_PATH_SET]
	if not items:
		return NULL_PATH_SET
	if len(items) == 1 and isinstance(items[0], BasePathSet): return items[0]
	return _SimplePathSet(items)

def _resolveDirPath(dir, context, location):
	""" Resolves a base directory, which must end with a slash once expanded. """
	dir = context.getFullPath(dir, defaultDir=location)
	if not isDirPath(dir):
		raise BuildException('Directory paths must end with an explicit / slash: "%s"'%dir, location=location)
	return dir

class DirBasedPathSet(BasePathSet):
	""" A base directory and a static list of paths within it, whose destinations
	are their paths relative to the base directory.

	Use `FindPaths` instead if the contents are not known in advance.

	>>> str(DirBasedPathSet('${RES_DIR}', 'icons/app.png', 'META-INF/', '${EXTRA[]}').resolveWithDestinations(BaseContext({'RES_DIR':'res/', 'EXTRA[]':'a.txt, b/c.txt'}))).replace('\\\\\\\\','/')
	"[('BUILD_DIR/res/icons/app.png', 'icons/app.png'), ('BUILD_DIR/res/META-INF/', 'META-INF/'), ('BUILD_DIR/res/a.txt', 'a.txt'), ('BUILD_DIR/res/b/c.txt', 'b/c.txt')]"

	>>> DirBasedPathSet('res/', 'a*b').resolve(BaseContext({})) #doctest: +IGNORE_EXCEPTION_DETAIL
	Traceback (most recent call last):
	...
	ondabuild.utils.buildexceptions.BuildException:
	"""
	def __init__(self, dir, *children):
		"""
		@param dir: the base directory, which may include ${...} properties and must end with a '/'

		@param children: relative paths of files or (with a trailing '/') directories,
		which may include ${...} and ${...[]} properties but not '*'
		"""
		self.__dir = dir
		self.__children = flatten(children)
		self.__location = BuildFileLocation()

	def __repr__(self):
		return 'DirBasedPathSet(%s, %s)' % (self.__dir, self.__children)

	def resolveWithDestinations(self, context):
		dir = _resolveDirPath(self.__dir, context, self.__location)
		result = []
		for c in flatten([context.expandPropertyValues(c, expandList=True) for c in self.__children]):
			c = c.strip()
			if '*' in c:
				raise BuildException('Cannot specify "*" patterns here (consider using FindPaths instead): "%s"'%c, location=self.__location)
			if os.path.isabs(c):
				raise BuildException('Cannot specify absolute path "%s"; paths must be relative to the base directory %s'%(c, self.__dir), location=self.__location)
			path = os.path.normpath(os.path.join(dir, c).rstrip('\\/'))
			if isDirPath(c): path += os.sep
			result.append((path, path[len(dir):].replace(os.sep, '/')))
		return result

	def _resolveUnderlyingDependencies(self, context):
		return ((path, self) for path, _ in self.resolveWithDestinations(context))

class FindPaths(BasePathSet):
	""" A lazily-evaluated PathSet that uses ``*`` and ``**`` (ant-style) globbing
	to discover the files (and optionally directories) under a base directory,
	such as all the ``.java`` files in a source tree.

	Matching is case-sensitive. It is an error if the directory does not exist, if
	nothing matches, or if any include pattern matches nothing. Results are
	sorted so builds are deterministic. Directory symlinks are returned but not followed.

	Patterns apply to files, or to directories if they end with ``/``. The default is
	all files (``**``). Destinations are paths relative to the base directory.

	>>> str(FindPaths('src/main/java/', includes=['**/*.java'], excludes=['**/package-info.java']))
	'FindPaths("src/main/java/", includes=["**/*.java"], excludes=["**/package-info.java"])'

	>>> FindPaths('src/', includes=['c:\\\\d']) #doctest: +IGNORE_EXCEPTION_DETAIL
	Traceback (most recent call last):
	...
	ondabuild.utils.buildexceptions.BuildException:
	"""

	def __init__(self, dir, excludes=None, includes=None):
		"""
		@param dir: base directory to search (relative or absolute, may contain ${...} properties),
		which must end with a '/' and use forward slashes

		@param includes: a list of glob patterns for the paths to include (excluding all others)

		@param excludes: a list of glob patterns to exclude after processing any includes
		"""
		self.__dir = dir
		includes, excludes = flatten(includes), flatten(excludes)
		bad = [x for x in includes+excludes if ('//' in x or x.startswith('/') or '\\' in x or '${' in x)]
		if bad:
			raise BuildException('Invalid includes/excludes pattern in FindPaths - must not contain \\, begin with /, or contain substitution variables: "%s"'%bad[0])
		if '\\' in dir:
			raise BuildException('Invalid base directory for FindPaths - must not contain \\ (always use forward slashes)')

		self.includes = GlobPatternSet.create(includes) if includes else None
		self.excludes = GlobPatternSet.create(excludes) if excludes else None
		self.location = BuildFileLocation()
		self.__cached = None

	def __repr__(self):
		return ('FindPaths("%s", includes=%s, excludes=%s)'%(self.__dir, self.includes or [], self.excludes or [])).replace('\'','"')

	def _resolveUnderlyingDependencies(self, context):
		return ((path, self) for path, _ in self.resolveWithDestinations(context))

	def __walk(self, resolveddir, tracker):
		matches = []
		pathsToWalk = [resolveddir.rstrip(os.sep)]
		visited = 0
		while pathsToWalk:
			visited += 1
			current = pathsToWalk.pop()
			root = current[len(resolveddir)-1:].replace('\\','/').strip('/')
			if root: root += '/'

			files, dirs, symlinks = [], [], set()
			with os.scandir(current) as it:
				for entry in it:
					if entry.is_dir():
						dirs.append(entry.name)
						if entry.is_symlink(): symlinks.add(entry.name)
					else:
						files.append(entry.name)

			if self.includes is not None:
				self.includes.removeUnmatchableDirectories(root, dirs)
			if self.excludes is not None and dirs:
				# a directory excluded as if it were a file (e.g. "**/generated") is not walked
				excludedDirs = set(self.excludes.getPathMatches(root, filenames=dirs)[0])
				dirs = [d for d in dirs if d not in excludedDirs]
			pathsToWalk.extend(current+os.sep+d for d in dirs if d not in symlinks)

			if self.includes is not None:
				files, matchedDirs = self.includes.getPathMatches(root, filenames=files, dirnames=dirs, unusedPatternsTracker=tracker)
			else:
				matchedDirs = [] # only include directories if explicitly asked for
			if self.excludes is not None:
				exFiles, exDirs = self.excludes.getPathMatches(root, filenames=files, dirnames=matchedDirs)
				files = [f for f in files if f not in exFiles]
				matchedDirs = [d for d in matchedDirs if d not in exDirs]

			matches.extend(root+f for f in files)
			matches.extend(root+d+'/' for d in matchedDirs)
		return matches, visited

	def resolveWithDestinations(self, context):
		"""
		Searches the file system for the matching paths, caching the result.
		"""
		if self.__cached is not None: return self.__cached
		log = logging.getLogger('FindPaths')
		resolveddir = _resolveDirPath(self.__dir, context, self.location)
		try:
			if not os.path.isdir(resolveddir):
				raise BuildException('FindPaths root directory does not exist: "%s"'%os.path.normpath(resolveddir), location=self.location)
			startTime = time.time()
			tracker = GlobUnusedPatternTracker(self.includes) if self.includes is not None else None
			matches, visited = self.__walk(resolveddir, tracker)

			log.info('FindPaths in "%s" found %d path(s) for %s after visiting %s directories; %s', resolveddir, len(matches), self, visited, self.location)
			if time.time()-startTime > 5:
				log.warning('FindPaths took a long time: %0.1f s to evaluate %s; see %s', time.time()-startTime, self, self.location)

			if not matches:
				raise BuildException('No matching files found', location=self.location)
			if tracker is not None and tracker.getUnusedPatterns():
				raise BuildException('Some include patterns did not match any files: %s'%', '.join(tracker.getUnusedPatterns()), location=self.location)
		except BuildException as e:
			raise BuildException('%s for %s'%(e.toSingleLineString(target=None), self), location=self.location)
		except OSError as e:
			raise BuildException('%r for %s'%(e, self), causedBy=True, location=self.location)

		normedbasedir = normpath(resolveddir)
		self.__cached = sorted((normedbasedir+m.replace('/', os.sep), m) for m in matches)
		return self.__cached

class FilteredPathSet(BasePathSet):
	""" Filters the contents of another PathSet using a function.

	>>> str(FilteredPathSet(isDirPath, PathSet('a.jar', 'classes/', 'res/icons/')).resolveWithDestinations(BaseContext({}))).replace('\\\\\\\\','/')
	"[('BUILD_DIR/classes/', 'classes/'), ('BUILD_DIR/res/icons/', 'icons/')]"
	>>> str(FilteredPathSet(isDirPath, PathSet('a.jar', 'classes/')))
	'FilteredPathSet(isDirPath, PathSet("a.jar", "classes/"))'
	"""
	def __init__(self, includeDecider, pathSet):
		"""
		@param includeDecider: a function that takes an absolute resolved path and
		returns True if it should be included

		@param pathSet: the PathSet to filter, or anything a PathSet can be created from
		"""
		self._pathSet = pathSet if isinstance(pathSet, BasePathSet) else PathSet(pathSet)
		self.__includeDecider = includeDecider

	def __repr__(self):
		return 'FilteredPathSet(%s, %s)' % (self.__includeDecider.__name__, self._pathSet)

	def resolveWithDestinations(self, context):
		return [(src, dest) for (src, dest) in self._pathSet.resolveWithDestinations(context) if self.__includeDecider(src)]

	def _resolveUnderlyingDependencies(self, context):
		# directories are kept since they may be generated, and contain matching files
		return ((src, self) for (src, _) in self._pathSet._resolveUnderlyingDependencies(context) if isDirPath(src) or self.__includeDecider(src))
