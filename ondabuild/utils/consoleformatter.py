# consoleformatter - pluggable formats for the messages ondabuild writes to stdout
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
Console output. Each format is a `logging.Handler` on the root logger that writes
to stdout; ``--format`` chooses which one the build uses.

The build log file is written in the same format whichever is chosen.
"""

import logging, os

_artifactsLog = logging.getLogger('ondabuild.artifacts')

_formatters = {}
_formattersInUse = []

class ConsoleFormatter(logging.Handler):
	"""
	Base class for console formats, which turn each log record into a line of output.

	@param output: the stream to write to, usually stdout
	@param buildOptions: the build options from the command line, such as ``dry-run``
	"""
	def __init__(self, output, buildOptions):
		logging.Handler.__init__(self)
		self.output = output
		self.buildOptions = buildOptions
		_formattersInUse.append(self)

	def emit(self, record):
		self.output.write(self.formatLine(record)+'\n')
		self.output.flush()

	def formatLine(self, record):
		""" Returns the text to print for the record, which may span several lines. """
		raise NotImplementedError()

	def publishArtifact(self, displayName, path):
		""" Called for each artifact of the build. Formats that can present artifacts
		(e.g. to a CI server) override this; the default does nothing. """

def registerConsoleFormatter(name, formatterClass):
	""" Makes a `ConsoleFormatter` subclass available as ``--format name``. """
	_formatters[name.lower()] = formatterClass

def getConsoleFormatterNames():
	return sorted(_formatters)

def createConsoleFormatter(name, output, buildOptions):
	""" Returns a new formatter instance, or None if no format of that name (ignoring case) is registered. """
	formatterClass = _formatters.get(name.lower())
	return formatterClass(output, buildOptions) if formatterClass else None

def publishArtifact(displayName, path):
	""" Records a file produced by the build, such as a compiler error log,
	and passes it to the console formatters in use.

	@param displayName: a description of the artifact
	@param path: an absolute path; empty values are ignored
	"""
	if not path: return
	assert displayName, 'displayName must be specified'
	if not os.path.isabs(path):
		raise Exception('Cannot publish artifact path "%s" because only absolute paths are supported'%path)

	path = os.path.normpath(path)
	if not os.path.exists(path):
		_artifactsLog.warning('Cannot find path for artifact publishing: "%s"', path)
	_artifactsLog.debug('Artifact %s: "%s"', displayName, path)
	for f in _formattersInUse:
		f.publishArtifact(displayName, path)

class DefaultConsoleFormatter(ConsoleFormatter):
	""" Plain messages, followed by the stack trace when there is one. """
	def formatLine(self, record):
		return self.format(record)

_MAKE_CATEGORIES = {logging.ERROR: 'error', logging.WARNING: 'warning'}

class MakeConsoleFormatter(ConsoleFormatter):
	"""
	Writes errors and warnings the way GNU Make does, so editors can jump to the
	build file or source line::

		file:line: category: description
	"""
	def formatLine(self, record):
		message = self.format(record)
		category = _MAKE_CATEGORIES.get(record.levelno)
		if not category: return message
		return '%s: %s: %s'%(self._location(record), category, message)

	@staticmethod
	def _location(record):
		filename = getattr(record, 'ondabuild_filename', None)
		if filename:
			return '%s:%s'%(filename, getattr(record, 'ondabuild_line', None) or 0)
		# scheduler messages (such as the final failure summary) are not from any one file
		if record.name == 'scheduler': return 'ondabuild'
		return '%s:%s'%(record.pathname, record.lineno or 0)

registerConsoleFormatter('default', DefaultConsoleFormatter)
registerConsoleFormatter('make', MakeConsoleFormatter)
