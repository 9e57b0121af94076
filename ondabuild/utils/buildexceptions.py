# buildexceptions - the exception raised for user-facing build problems
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
Contains `ondabuild.utils.buildexceptions.BuildException`, which reports a problem with the build
files or with the build itself (as opposed to an internal ondabuild bug).
"""

import traceback, sys

from ondabuild.utils.buildfilelocation import BuildFileLocation


class BuildException(Exception):
	""" Raised for a mistake in a build file or a failure while building, such as a
	compiler error.

	A BuildException is logged as a message without a python stack trace, so the
	message must already contain everything needed to diagnose the problem.
	"""

	def __init__(self, message, location=None, causedBy=False):
		"""
		If raised while build files are being loaded, the current build file location is
		found from the stack. If raised while a target is being processed, the scheduler
		adds the target's name and location when it is logged, so the message
		does not need to mention the target.

		@param message: the cause of the error

		@param location: a BuildFileLocation to report instead of the location of
		the target, e.g. for a PathSet which is resolved later than it was defined.

		@param causedBy: if True, the exception currently being handled is appended
		to the message. If that is not itself a BuildException its traceback is kept
		so it can be logged.
		"""
		assert message
		self.__msg = message.strip()
		self.__causedByTraceback = None

		if causedBy:
			excinfo = sys.exc_info()
			cause = excinfo[1]
			if isinstance(cause, BuildException):
				causeMsg = cause.__msg
				if not location: location = cause.__location
			else:
				causeMsg = '%s'%cause
				self.__causedByTraceback = ''.join(traceback.format_exception(*excinfo))
			if causeMsg not in self.__msg: self.__msg += ': %s'%causeMsg

		if (not location or not location.buildFile) and BuildFileLocation._currentBuildFile:
			location = BuildFileLocation()
			if not location.buildFile: location = None
		self.__location = location

		Exception.__init__(self, self.__msg)

	def getLoggerExtraArgDict(self, target=None):
		"""
		Returns a dict for the extra= argument of a logger call, giving the
		build file and line number where they are known.

		@param target: used for the location if the exception does not have one
		"""
		location = self.__location
		if not location and target and target.location.buildFile: location = target.location
		if not location: return {}
		return {'ondabuild_filename':location.buildFile, 'ondabuild_line':location.lineNumber}

	def __repr__(self):
		return 'BuildException<%s>'%self.toSingleLineString(None)

	def __str__(self):
		return self.toSingleLineString(None)

	def toSingleLineString(self, target):
		""" Returns the message on one line, prefixed with the location and the failed target if known.

		@param target: the target that failed, or None
		"""
		result = self.__msg
		if self.__location and str(self.__location) not in result:
			result = '%s : %s'%(self.__location, result)
		if target:
			result = '%s : %s'%(target, result)
		return result

	def toMultiLineString(self, target, includeStack=False):
		""" Returns the message followed by the build file location, and optionally the
		stack trace of the underlying cause.

		@param target: the target that failed, or None
		@param includeStack: include the traceback of a non-BuildException cause
		"""
		result = self.__msg
		if target:
			result = '%s : %s'%(target, result)

		location = self.__location or (target.location if target else None)
		if location and location.buildFile:
			result += '\n  %s'%location

		if self.__causedByTraceback and includeStack:
			result += '\n\nCaused by:\n%s'%self.__causedByTraceback
		return result.strip()
