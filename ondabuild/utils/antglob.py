# antglob - matching of ant-style path patterns
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
Ant-style glob patterns, as used by `ondabuild.pathsets.FindPaths`.

A pattern element of ``*`` matches zero or more characters other than a slash, and
an element of ``**`` matches zero or more whole directories. Patterns ending with a
slash only match directories, and other patterns only match files.
"""

import re

from ondabuild.utils.buildexceptions import BuildException
from ondabuild.utils.flatten import flatten

def _elementRegex(element):
	return '[^/]*'.join(re.escape(part) for part in element.split('*'))

class GlobPatternSet(object):
	"""
	An immutable set of one or more ant-style glob patterns. A path matches the
	set if it matches any of the patterns.

	Use `create` rather than the constructor.
	"""
	__cache = {}

	@staticmethod
	def create(patterns):
		"""
		Returns a (possibly shared) GlobPatternSet for the specified pattern or list of patterns.

		Backslashes and ``?`` are not permitted. Empty patterns are ignored.
		"""
		key = tuple(flatten(patterns))
		if key not in GlobPatternSet.__cache:
			GlobPatternSet.__cache[key] = GlobPatternSet(key)
		return GlobPatternSet.__cache[key]

	def __init__(self, patterns):
		self.origpatterns = []
		self.__compiled = [] # (regex, isDirPattern, elementsBeforeStarStar)
		for p in patterns:
			if not p: continue
			if '?' in p:
				raise BuildException('Invalid pattern ("?" is not supported at present): %s'%p)
			if '\\' in p:
				raise BuildException('Invalid pattern (must use forward slashes not backslashes): %s'%p)

			isDir = p.endswith('/')
			elements = (p[:-1] if isDir else p).split('/')
			for e in elements:
				if '**' in e and e != '**':
					raise BuildException('Invalid pattern (pattern elements containing "**" must not have any other characters): %s'%p)

			regex = ''
			for i, e in enumerate(elements):
				last = i == len(elements)-1
				if e == '**':
					regex += '.*' if last else '(?:[^/]+/)*'
				else:
					regex += _elementRegex(e) + ('' if last else '/')

			prefix = elements[:elements.index('**')] if '**' in elements else elements[:-1]
			self.origpatterns.append(p)
			self.__compiled.append((re.compile(regex+'$'), isDir, [re.compile(_elementRegex(e)+'$') for e in prefix], '**' in elements))

	def __str__(self):
		"""
		>>> str(GlobPatternSet.create(['**/*.java', 'META-INF/']))
		"['**/*.java', 'META-INF/']"
		"""
		return str(self.origpatterns)

	def __repr__(self):
		return 'GlobPatternSet%s'%self.__str__()

	def getPathMatches(self, rootdir, filenames=None, dirnames=None, unusedPatternsTracker=None):
		"""
		Matches the file and directory basenames within a single directory.

		@param rootdir: the directory containing the names, relative to the base of the
		search, with forward slashes and a trailing slash. Empty for the base itself.

		@param filenames: a list of file basenames, or None

		@param dirnames: a list of directory basenames, or None

		@param unusedPatternsTracker: a `GlobUnusedPatternTracker` to record which patterns matched

		@return: (matchingFilenames, matchingDirnames)

		>>> GlobPatternSet.create('**/*.java').getPathMatches('uk/blankaspect/', ['App.java', 'App.properties'], ['onda'])
		(['App.java'], [])
		>>> GlobPatternSet.create(['*/']).getPathMatches('', ['a.txt'], ['uk'])
		([], ['uk'])
		"""
		assert rootdir=='' or rootdir[-1]=='/', 'Root directory must end with a slash: %s'%rootdir
		results = ([], [])
		for names, isDir, result in [(filenames or [], False, results[0]), (dirnames or [], True, results[1])]:
			for name in names:
				path = rootdir+name.rstrip('/')
				for index, (regex, isDirPattern, _, _) in enumerate(self.__compiled):
					if isDirPattern == isDir and regex.match(path):
						result.append(name)
						if unusedPatternsTracker is not None: unusedPatternsTracker._recordUsage(index)
						break
		return results

	def removeUnmatchableDirectories(self, rootdir, dirnames):
		"""
		Removes from the dirnames list (in place) any directory under which no pattern
		could possibly match. May leave some that cannot match, but never removes one that could.

		@return: the same dirnames list

		>>> GlobPatternSet.create(['**/*.java']).removeUnmatchableDirectories('', ['uk', 'META-INF'])
		['uk', 'META-INF']
		>>> GlobPatternSet.create(['uk/blankaspect/**']).removeUnmatchableDirectories('', ['uk', 'META-INF'])
		['uk']
		>>> GlobPatternSet.create(['a/b.txt']).removeUnmatchableDirectories('a/', ['c'])
		[]
		"""
		def couldMatch(d):
			elements = (rootdir+d).split('/')
			for _, isDirPattern, prefix, hasStarStar in self.__compiled:
				if not hasStarStar and len(elements) > len(prefix)+(1 if isDirPattern else 0): continue
				if all(p.match(e) for p, e in zip(prefix, elements)): return True
			return False
		dirnames[:] = [d for d in dirnames if couldMatch(d)]
		return dirnames

	def matches(self, path):
		"""
		Returns True if the path matches any pattern. Directory paths must end with a slash.
		"""
		isDir = path.endswith('/')
		path = path.rstrip('/')
		return any(isDirPattern == isDir and regex.match(path) for regex, isDirPattern, _, _ in self.__compiled)

class GlobUnusedPatternTracker(object):
	"""
	Records which patterns of a `GlobPatternSet` matched at least one path, so
	that patterns which matched nothing can be reported as errors.
	"""
	def __init__(self, patternSet):
		self._patterns = patternSet.origpatterns
		self._used = [False]*len(self._patterns)

	def _recordUsage(self, patternIndex):
		self._used[patternIndex] = True

	def getUnusedPatterns(self):
		""" Returns a list of the patterns that have not been used. """
		return [p for p, used in zip(self._patterns, self._used) if not used]

def antGlobMatch(pattern, path):
	"""
	Matches a path against a single ant-style glob pattern.

	>>> antGlobMatch('*.java', 'App.java')
	True
	>>> antGlobMatch('*.java', 'uk/App.java')
	False
	>>> antGlobMatch('**/*.java', 'App.java')
	True
	>>> antGlobMatch('**/*.java', 'uk/blankaspect/onda/App.java')
	True
	>>> antGlobMatch('uk/**/App.java', 'uk/App.java')
	True
	>>> antGlobMatch('uk/*/App.java', 'uk/a/b/App.java')
	False
	>>> antGlobMatch('a*b', 'axxxb')
	True
	>>> antGlobMatch('a*b', 'axxx')
	False
	>>> antGlobMatch('*[[*', 'xx[[')
	True
	>>> antGlobMatch('**/', 'uk/blankaspect/')
	True
	>>> antGlobMatch('**', 'uk/blankaspect/')
	False
	>>> antGlobMatch('a/b/**', 'a/b/c/d')
	True
	"""
	if not path: return not pattern
	return GlobPatternSet.create(pattern).matches(path)
