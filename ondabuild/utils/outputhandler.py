# outputhandler - turns the output of compilers and other tools into log messages and errors
#
# Copyright (c) 2014 - 2019 Software AG, Darmstadt, Germany and/or its licensors
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
Contains `ondabuild.utils.outputhandler.ProcessOutputHandler`, which targets use to interpret the
stdout/stderr lines and return code of a subprocess, and to decide whether it failed.
"""

import re, logging
from ondabuild.utils.buildexceptions import BuildException
from ondabuild.propertysupport import defineOption

_logger = logging.getLogger('processoutput')

class ProcessOutputHandler(object):
	"""
	Collects the errors and warnings in the output of a process, logs each line
	at a suitable level, and raises a summary BuildException if the process failed.

	`handleLine` is called for every line of stdout and then stderr (as str, not bytes),
	then `handleEnd` is called once with the return code. Subclasses for particular tools
	(such as `ondabuild.utils.java.JavacProcessOutputHandler`) usually override
	`_decideLogLevel` and `_parseLocationFromLine`.

	>>> h = ProcessOutputHandler('javac')
	>>> h.handleLine('error: cannot find symbol')
	>>> h.handleLine('error: package uk.blankaspect.common does not exist')
	>>> len(h.getErrors())
	2
	>>> h.handleEnd(1)
	Traceback (most recent call last):
	...
	ondabuild.utils.buildexceptions.BuildException: 2 errors, first is: error: cannot find symbol

	>>> h = ProcessOutputHandler('javac')
	>>> h.handleLine('Note: some input files use unchecked operations')
	>>> h.handleEnd(2)
	Traceback (most recent call last):
	...
	ondabuild.utils.buildexceptions.BuildException: javac failed with return code 2; no errors reported, last line was: Note: some input files use unchecked operations

	>>> ProcessOutputHandler('javac').handleEnd(3)
	Traceback (most recent call last):
	...
	ondabuild.utils.buildexceptions.BuildException: javac failed with return code 3 and no output generated
	"""

	class Options:
		""" Names of the options that customize ProcessOutputHandler. """

		ignoreReturnCode = 'ProcessOutputHandler.ignoreReturnCode'
		""" If True, a non-zero return code is not treated as an error.

		>>> h = ProcessOutputHandler.create('tool', options={ProcessOutputHandler.Options.ignoreReturnCode:True})
		>>> h.handleLine('some message')
		>>> h.handleEnd(5)
		"""

		regexIgnore = 'ProcessOutputHandler.regexIgnore'
		""" A regular expression; lines matching it are neither logged nor treated as errors or warnings.

		>>> h = ProcessOutputHandler.create('tool', options={ProcessOutputHandler.Options.regexIgnore:'.*bootstrap classpath.*'})
		>>> h.handleLine('warning: [options] bootstrap classpath not set in conjunction with -source 8')
		>>> h.handleLine('warning: [deprecation] Date(int,int,int) in Date has been deprecated')
		>>> len(h.getWarnings())
		1
		"""

		factory = 'ProcessOutputHandler.factory'
		""" The ProcessOutputHandler class (or a function with the same signature as its
		constructor) that `ProcessOutputHandler.create` instantiates. Intended for
		customizing individual targets rather than the whole build. """

	def __init__(self, name, treatStdErrAsErrors=True, options=None):
		"""
		@param name: a short display name for the process, used as a prefix for logged lines

		@param treatStdErrAsErrors: if True every stderr line is an error

		@param options: a dictionary of resolved option values, available as ``self.options``
		"""
		self._name = name
		self._errors = []
		self._warnings = []
		self._lastLine = ''

		self._logger = _logger
		self.options = options or {}
		self._treatStdErrAsErrors = treatStdErrAsErrors
		self._ignoreReturnCode = self.options.get(ProcessOutputHandler.Options.ignoreReturnCode, False)
		ignore = self.options.get(ProcessOutputHandler.Options.regexIgnore)
		self._regexIgnore = re.compile(ignore) if ignore else None

	@staticmethod
	def create(name, options=None, **kwargs):
		"""
		Creates a handler, using the class given by the ``ProcessOutputHandler.factory``
		option if present.

		>>> type(ProcessOutputHandler.create('tool')).__name__
		'ProcessOutputHandler'
		>>> def myfactory(*args, **kwargs): print('called factory %s, kwarg keys: %s'%(args, list(kwargs.keys())))
		>>> ProcessOutputHandler.create('tool', options={ProcessOutputHandler.Options.factory: myfactory})
		called factory ('tool',), kwarg keys: ['options']
		"""
		cls = (options or {}).get(ProcessOutputHandler.Options.factory) or ProcessOutputHandler
		return cls(name, options=options, **kwargs)

	def handleLine(self, line: str, isstderr=False):
		"""
		Called once for each line of output, already decoded to a str.
		"""
		self._lastLine = line
		if self._regexIgnore is not None and self._regexIgnore.match(line): return

		level = self._decideLogLevel(line, isstderr)
		# parsing is skipped for lines that would not be logged anyway
		if not level or (level < logging.WARNING and not self._logger.isEnabledFor(level)): return

		filename, fileline, col, line = self._parseLocationFromLine(self._preprocessLine(line))
		{logging.ERROR: self._errors, logging.WARNING: self._warnings}.get(level, []).append(line)
		self._log(level, line, filename, fileline, col)

	def handleEnd(self, returnCode=None):
		"""
		Called when the process has terminated. Logs the number of warnings, and raises a
		BuildException if there were errors or a non-zero ``returnCode``.

		The message contains the first error, or if none the first warning, or failing
		that the last line of output.
		"""
		if self._warnings: self._logger.warning('%d warnings during %s', len(self._warnings), self._name)
		msg = self._failureMessage(returnCode)
		if msg: raise BuildException(msg)

	def _failureMessage(self, returnCode):
		if self._errors:
			if len(self._errors) == 1: return self._errors[0]
			return '%d errors, first is: %s'%(len(self._errors), self._errors[0])
		if not returnCode or self._ignoreReturnCode: return None

		msg = '%s failed with return code %s'%(self._name, returnCode)
		if self._warnings:
			return msg+'; no errors reported, first warning was: %s'%self._warnings[0]
		if self.getLastOutputLine():
			return msg+'; no errors reported, last line was: %s'%self.getLastOutputLine()
		return msg+' and no output generated'

	def _decideLogLevel(self, line: str, isstderr: bool) -> int:
		"""
		Returns the level for a raw line: ``logging.ERROR``, ``logging.WARNING``,
		``logging.INFO`` or None to ignore it.

		By default lines containing ``error:`` (or ``error C1234:``) are errors and all
		stderr lines are errors if treatStdErrAsErrors was set; similarly for warnings.
		"""
		assert isinstance(line, str), 'ProcessOutputHandler does not accept bytes - caller must decode them first'

		if (isstderr and self._treatStdErrAsErrors) or _ERROR_REGEX.search(line): return logging.ERROR
		if _WARNING_REGEX.search(line): return logging.WARNING
		return logging.INFO

	def _parseLocationFromLine(self, line):
		"""
		Extracts a source location from a line so that errors and warnings can be
		shown in a form editors understand.

		@return: (filename, linenumber, col, line) where line may have the location removed
		"""
		return None, None, None, line

	def _log(self, level: int, msg: str, filename=None, fileline=None, filecol=None):
		""" Writes a line to the logger, attaching any source location to the record. """
		extra = {}
		if filename:
			extra = {'ondabuild_filename':filename, 'ondabuild_line':fileline, 'ondabuild_col':filecol}
		self._logger.log(level, '%s%s> %s', self._name, _LEVEL_PREFIXES.get(level, ''), msg, extra=extra)

	def _preprocessLine(self, line: str):
		""" Transforms a line before it is logged or stored; strips whitespace by default. """
		return line.strip()

	def getErrors(self): return self._errors
	def getWarnings(self): return self._warnings
	def getLastOutputLine(self): return self._preprocessLine(self._lastLine)

_ERROR_REGEX = re.compile(r'error\s*([A-Z]+\d+)?:', re.IGNORECASE)
_WARNING_REGEX = re.compile(r'warning\s*([A-Z]+\d+)?:', re.IGNORECASE)
_LEVEL_PREFIXES = {logging.ERROR: ' ERROR', logging.WARNING: ' WARN'}

defineOption(ProcessOutputHandler.Options.ignoreReturnCode, False)
defineOption(ProcessOutputHandler.Options.regexIgnore, None)
defineOption(ProcessOutputHandler.Options.factory, ProcessOutputHandler)
