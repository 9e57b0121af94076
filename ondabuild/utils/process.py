# process - runs tools such as javac as subprocesses
#
# Copyright (c) 2013 - 2019 Software AG, Darmstadt, Germany and/or its licensors
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

import subprocess, os, locale

from ondabuild.utils.outputhandler import ProcessOutputHandler
from ondabuild.utils.buildexceptions import BuildException

import logging
log = logging.getLogger('process')

def _quoteArg(s):
	return '"%s"'%s if ' ' in s else s

def call(args, env=None, cwd=None, outputHandler=None, outputEncoding=None, timeout=None, displayName=None, options=None):
	"""
	Runs a process, passing each line of its stdout and stderr to an output handler,
	which raises a BuildException if the return code or output indicates an error.

	@param args: the executable followed by its arguments; None items are ignored

	@param env: environment variable overrides; a None value removes the variable

	@param cwd: the working directory (defaults to the current directory)

	@param outputHandler: a `ondabuild.utils.outputhandler.ProcessOutputHandler`; if not
		specified one is created from the options

	@param outputEncoding: the encoding of the process output; defaults to the
		preferred encoding of this system

	@param timeout: seconds before the process is killed; defaults to the
		``process.timeout`` option

	@param displayName: a description of the process for error messages

	@param options: a dictionary of resolved options

	@return: the output handler
	"""
	options = options or {}
	if not timeout: timeout = options.get('process.timeout', 600)

	args = [x for x in args if x is not None]
	processName = os.path.basename(args[0])

	environs = os.environ.copy()
	for k, v in (env or {}).items():
		if v is None:
			environs.pop(k, None)
		else:
			environs[k] = v
	if not cwd: cwd = os.getcwd()

	log.info('Executing %s process: %s', processName, ' '.join(_quoteArg(s) for s in args))
	if cwd != os.getcwd():
		log.info('%s working directory: %s', processName, cwd)
	if env:
		log.info('%s environment overrides: %s', processName, ', '.join(sorted('%s=%s'%(k, env[k]) for k in env)))
	try:
		process = subprocess.Popen(args, env=environs, stdout=subprocess.PIPE, stderr=subprocess.PIPE, cwd=cwd)
	except Exception as e:
		raise EnvironmentError('Cannot start process "%s": %s'%(args[0], e))

	if not outputHandler:
		outputHandler = ProcessOutputHandler.create(processName, options=options)
	if not displayName:
		displayName = str(args)
		if len(displayName) > 200: displayName = displayName[:200]+'...]'

	timedOut = False
	try:
		out, err = process.communicate(timeout=timeout)
	except subprocess.TimeoutExpired:
		log.info('Process timeout for %s after %s s', displayName, timeout)
		timedOut = True
		process.kill()
		out, err = process.communicate()

	outputEncoding = outputEncoding or locale.getpreferredencoding(False)
	log.debug('%s outputEncoding assumed to be: %s', processName, outputEncoding)
	# be tolerant of unexpected characters, since what tools write is hard to predict
	out = str(out, outputEncoding, errors='replace')
	err = str(err, outputEncoding, errors='replace')

	hasfailed = True
	try:
		for l in out.splitlines():
			outputHandler.handleLine(l, False)
		for l in err.splitlines():
			outputHandler.handleLine(l, True)

		# only raise after the output has been logged
		if timedOut:
			raise BuildException('Terminating process %s after hitting %d second timeout'%(processName, timeout))

		outputHandler.handleEnd(process.returncode)
		hasfailed = False
		return outputHandler
	finally:
		if hasfailed:
			log.debug('Arguments of failed process are: %s', '\n   '.join(_quoteArg(s) for s in args))
