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
The ``ondabuild`` command line.

The root build file is loaded (which defines properties, options and targets), then
depending on the operation its contents are listed or the selected targets are
cleaned and/or built. The exit code is:

	- 0 if everything succeeded
	- 2 if the command line is invalid
	- 3 if a clean failed
	- 4 if any target failed to build
	- 5 for other build errors, such as a mistake in a build file
	- 6 for unexpected errors
"""

import sys, os, getopt, time, logging, re, locale

from ondabuild.buildcommon import ONDABUILD_VERSION
from ondabuild.buildcontext import BuildInitializationContext
from ondabuild.utils.fileutils import mkdir, deleteDir
from ondabuild.utils.buildexceptions import BuildException
from ondabuild.utils.consoleformatter import createConsoleFormatter, getConsoleFormatterNames, publishArtifact
from ondabuild.utils.timeutils import formatTimePeriod

log = logging.getLogger('ondabuild')

_USAGE = '''
ondabuild {version} on Python {python}

Usage: ondabuild [operation] [option]... [NAME=value]... [target|tag|regex]...

With no targets, the targets in the "full" tag are built. A regex containing *
can be given instead of a target name if it matches exactly one target.

Operations (the default is to build):
  --clean                 Clean the targets; a full clean deletes the output dirs
  --rebuild               Clean the targets, then build them
  --targets               List the targets and tags
  --properties            List the properties and their values
  --options               List the target options and their values

Options:
  -f, --buildfile FILE    The root build file (default: ./root.ondabuild.py)
  -x, --exclude TARGET    Exclude a target or tag unless another target needs it
  -k, --keep-going        Build as much as possible after a target fails
  -n, --dry-run           Show what would be built without building anything
  -l, --log-level LEVEL   debug, info, warning or critical
  -L, --logfile FILE      The build log (default: ${{LOG_FILE}})
  -F, --format NAME       Console output format: {formats}

Special properties:
  OUTPUT_DIR=build        Where output goes, relative to the root build file
  BUILD_MODE=release      release, debug or a mode defined by the build
  BUILD_NUMBER=n          A build number, for reporting and use by the build
'''

_LOG_FILE_FORMAT = '%(asctime)s %(relativeCreated)05d %(levelname)-8s [%(threadName)s %(thread)5d] %(name)-10s - %(message)s'
_DATE_TIME_FORMAT = '%a %Y-%m-%d %H:%M:%S %Z'

class _CommandLine(object):
	""" The operation, targets and settings given on the command line. """
	def __init__(self):
		self.task = 'build'
		self.buildFile = os.path.abspath('root.ondabuild.py')
		self.properties = {}
		self.included = []
		self.excluded = []
		self.logLevel = None
		self.logFile = None
		self.format = 'default'
		self.buildOptions = {'keep-going':False, 'dry-run':False}

	@property
	def allTargets(self):
		return self.included == ['full'] and not self.excluded

def _usage():
	return _USAGE.format(version=ONDABUILD_VERSION, python='%s.%s.%s'%sys.version_info[:3],
		formats=', '.join(getConsoleFormatterNames()))

def _parseCommandLine(args):
	""" Returns a `_CommandLine`, or an exit code if ondabuild should stop without loading the build file. """
	try:
		opts, positional = getopt.gnu_getopt(args, 'h?knx:f:l:L:F:', ['help', 'clean', 'rebuild',
			'targets', 'properties', 'options', 'exclude=', 'buildfile=', 'keep-going', 'dry-run',
			'log-level=', 'logfile=', 'format='])
	except getopt.GetoptError as e:
		print(e)
		print('For help use --help')
		return 2

	cl = _CommandLine()
	for o, a in opts:
		o = o.lstrip('-')
		if o in ['h', '?', 'help']:
			print(_usage())
			return 0
		elif o in ['clean', 'rebuild', 'targets', 'properties', 'options']:
			cl.task = o
		elif o in ['x', 'exclude']:
			cl.excluded.append(a)
		elif o in ['f', 'buildfile']:
			cl.buildFile = os.path.abspath(a)
		elif o in ['k', 'keep-going']:
			cl.buildOptions['keep-going'] = True
		elif o in ['n', 'dry-run']:
			cl.buildOptions['dry-run'] = True
		elif o in ['l', 'log-level']:
			cl.logLevel = getattr(logging, a.upper(), None)
			if not isinstance(cl.logLevel, int):
				print('invalid log level "%s"'%a)
				return 2
		elif o in ['L', 'logfile']:
			cl.logFile = a
		elif o in ['F', 'format']:
			if a.lower() not in getConsoleFormatterNames():
				print('invalid format "%s"; valid formats are: %s'%(a, ', '.join(getConsoleFormatterNames())))
				return 2
			cl.format = a

	# a clean removes as much as it can
	if cl.task == 'clean': cl.buildOptions['keep-going'] = True

	for arg in positional:
		arg = arg.strip()
		if '=' in arg:
			name, value = arg.split('=', 1)
			cl.properties[name.upper()] = value
		elif arg:
			cl.included.append(arg)
	cl.included = cl.included or ['full']
	return cl

def _loadBuildFile(cl):
	init = BuildInitializationContext(cl.properties)
	init._defineOption('process.timeout', 600)
	init._defineOption('build.keepGoing', cl.buildOptions['keep-going'])
	init.initializeFromBuildFile(cl.buildFile, isRealBuild=cl.task in ['build', 'clean', 'rebuild'])
	init._finalizeGlobalOptions()
	return init

def _findTarget(init, name):
	""" Returns the target with this name, or the only target matching it as a regex if it contains ``*``. """
	target = init.targets().get(name)
	if target: return target

	if '*' in name:
		try:
			regex = re.compile(name.rstrip('$')+'$', re.IGNORECASE)
		except re.error as e:
			raise BuildException('Invalid target regular expression "%s": %s'%(name, e))
		matches = sorted((t for t in init.targets().values() if regex.match(t.name)), key=lambda t: t.name)
		if len(matches) > 1:
			print('Found multiple targets matching pattern %s:\n\n%s\n'%(name, '\n'.join(t.name for t in matches)))
			raise BuildException('Target regex must uniquely identify a single target: %s (use tags to specify multiple related targets)'%name)
		if matches: return matches[0]

	raise BuildException('Unknown target name, target regex or tag name: %s'%name)

def _selectTargets(init, cl):
	""" Returns the set of targets named by the command line, with tags expanded and exclusions removed. """
	selected = set()
	for name in cl.included:
		selected.update(init.tags().get(name) or [_findTarget(init, name)])
	for name in cl.excluded:
		selected.difference_update(init.tags().get(name) or [_findTarget(init, name)])
	return selected

def _printValues(values):
	# names are right-aligned, unless one is too long for that to be readable
	width = max(map(len, values), default=0)
	if width > 30: width = 0
	for name in sorted(values):
		print('%*s = %s'%(width, name, values[name]))

def _printTargets(init, selected, allTargets):
	def lines(targets):
		return sorted('   %-15s %s'%('<%s>'%t.type, t.name) for t in targets)

	excluded = [t for t in init.targets().values() if t not in selected]
	if excluded:
		print('%d target(s) excluded (unless required as dependencies): '%len(excluded))
		print('\n'.join(lines(excluded))+'\n')

	print('%d target(s) included: '%len(selected))
	print('\n'.join(lines(selected))+'\n')

	if allTargets:
		tags = init.tags()
		print('%d tag(s) are defined: '%len(tags))
		for line in sorted('   %-15s (%d targets)'%(tag, len(tags[tag])) for tag in tags):
			print(line)

def _addLogFileHandler(logFile, level):
	mkdir(os.path.dirname(logFile))
	handler = logging.FileHandler(logFile, mode='w', encoding='UTF-8')
	handler.setFormatter(logging.Formatter(_LOG_FILE_FORMAT))
	handler.setLevel(level)
	logging.getLogger().addHandler(handler)
	return handler

def _schedule(init, selected, cl, clean):
	""" Runs the scheduler, returning (errors, targets built, targets completed, total targets). """
	# not imported until a build file is loaded, since it defines options
	from ondabuild.internal.scheduler import BuildScheduler
	return BuildScheduler(init, selected, dict(cl.buildOptions, clean=clean)).run()

def _describe(init, operation):
	return '"%s" %s "%s"'%(init.getPropertyValue('BUILD_MODE'), operation, init.getPropertyValue('BUILD_NUMBER'))

def _clean(init, selected, cl):
	startTime = time.time()
	description = _describe(init, 'clean')
	log.critical('Starting %s at %s', description, time.strftime(_DATE_TIME_FORMAT, time.localtime(startTime)))

	errors = _schedule(init, selected, cl, clean=True)[0]
	# a full clean also deletes anything in the output dirs that no target produced
	if cl.allTargets and not cl.buildOptions['dry-run']:
		for d in init.getOutputDirs():
			deleteDir(d)

	log.critical('Completed %s after %s\n', description, formatTimePeriod(time.time()-startTime))
	return errors

def _build(init, selected, cl):
	buildType = 'incremental' if any(os.path.exists(d) for d in init.getOutputDirs()) else 'full'
	if not cl.buildOptions['dry-run']:
		for d in init.getOutputDirs():
			log.info('Creating output directory: %s', d)
			mkdir(d)

	startTime = time.time()
	description = buildType+' '+_describe(init, 'build')
	log.critical('Starting %s at %s', description, time.strftime(_DATE_TIME_FORMAT, time.localtime(startTime)))
	result = _schedule(init, selected, cl, clean=False)
	log.critical('Completed %s after %s\n', description, formatTimePeriod(time.time()-startTime))
	return result

def _cleanAndOrBuild(init, selected, cl):
	""" Returns the exit code. """
	if cl.task in ['clean', 'rebuild']:
		errors = _clean(init, selected, cl)
		if errors:
			log.critical('*** ONDABUILD FAILED: %d error(s): \n   %s', len(errors), '\n   '.join(sorted(errors)))
			return 3
		if cl.task == 'clean':
			log.critical('*** ONDABUILD SUCCEEDED: %d target(s) cleaned', len(selected))
			return 0

		# a fresh load forgets anything found on disk (e.g. by FindPaths) before the clean
		init = _loadBuildFile(cl)
		selected = _selectTargets(init, cl)

	errors, built, completed, total = _build(init, selected, cl)
	if errors:
		# in order of failure, unless there are so many that grouping similar ones helps
		if len(errors) >= 10: errors.sort()
		log.critical('*** ONDABUILD FAILED: %d error(s) (aborted with %d targets outstanding): \n   %s',
			len(errors), total-completed, '\n   '.join(errors))
		return 4
	log.critical('*** ONDABUILD SUCCEEDED: %s built (%d up-to-date)', built or '<NO TARGETS>', total-built)
	return 0

def main(args):
	""" Runs ondabuild with the specified command line arguments (excluding the program name),
	returning the exit code.
	"""
	cl = _parseCommandLine(args)
	if isinstance(cl, int): return cl

	logging.getLogger().setLevel(cl.logLevel or logging.INFO)
	console = createConsoleFormatter(cl.format, sys.stdout, cl.buildOptions)
	console.setLevel(cl.logLevel or logging.WARNING)
	logging.getLogger().addHandler(console)

	try:
		init = _loadBuildFile(cl)
		selected = _selectTargets(init, cl)

		if cl.task == 'properties':
			print('Properties: ')
			_printValues(init.getProperties())
			return 0
		if cl.task == 'options':
			_printValues(init.mergeOptions(None))
			return 0
		if cl.task == 'targets':
			_printTargets(init, selected, cl.allTargets)
			return 0

		logFile = os.path.abspath(cl.logFile or init.getPropertyValue('LOG_FILE'))
		log.critical('Writing build log to: %s', logFile)
		logHandler = _addLogFileHandler(logFile, cl.logLevel or logging.INFO)
		try:
			log.info('Using ondabuild %s from %s on Python %s.%s.%s', ONDABUILD_VERSION,
				os.path.dirname(os.path.dirname(os.path.abspath(__file__))), *sys.version_info[:3])
			log.info('Using build options: %s', cl.buildOptions)
			log.info('Default encoding for subprocesses assumed to be: %s', locale.getpreferredencoding(False))
			return _cleanAndOrBuild(init, selected, cl)
		finally:
			publishArtifact('ondabuild logfile', logFile)
			logging.getLogger().removeHandler(logHandler)
			logHandler.close()

	except BuildException as e:
		log.error('*** ONDABUILD FAILED: %s', e.toMultiLineString(None))
		return 5
	except Exception:
		log.exception('*** ONDABUILD FAILED: ')
		return 6

def run():
	""" Entry point for the ``ondabuild`` console script. """
	sys.exit(main(sys.argv[1:]))

if __name__ == '__main__':
	run()
