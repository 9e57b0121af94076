# buildfilelocation - the build file and line that defined a target or property
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

import inspect, os, sys

def formatFileLocation(path, lineNumber):
	""" Formats a file and line number the way vim expects them on its command line.

	>>> formatFileLocation('foo.ondabuild.py', 12)
	'"foo.ondabuild.py" +12'
	"""
	return '"%s" +%d' % (os.path.normpath(path), lineNumber)

class BuildFileLocation(object):
	""" The position in a build file that is currently being executed.
	"""
	buildFile = None
	buildDir = None
	lineNumber = None

	_currentBuildFile = [] # stack of build files being loaded; the last item is the innermost

	def __init__(self, raiseOnError=False):
		"""
		Inspects the stack for the innermost frame belonging to the build file
		currently being loaded.

		Only meaningful while build files are being loaded; at any other time
		the location is empty.

		@param raiseOnError: raise an exception instead of creating an empty
		location when no build file frame can be found
		"""
		found = self._findFrame() if BuildFileLocation._currentBuildFile else None

		if found:
			self.buildFile, self.lineNumber = found
			self.buildDir = os.path.dirname(self.buildFile)
		elif raiseOnError:
			raise Exception('Cannot find the location in source build file')
		if 'doctest' in sys.argv[0] and not self.buildDir: self.buildDir = 'BUILD_DIR'

	def __str__(self):
		if self.buildFile: return formatFileLocation(self.buildFile, self.lineNumber)
		return '<unknown build file location>'

	def _findFrame(self):
		current = BuildFileLocation._currentBuildFile[-1].lower().replace('\\','/')
		frame = sys._getframe(1)
		while frame:
			filename = inspect.getfile(frame)
			if filename.lower().replace('\\','/') == current:
				return filename, inspect.getlineno(frame)
			frame = frame.f_back
		return None
