# java - helpers for running the Java compiler and writing jar files and manifests
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
Functions used by `ondabuild.targets.java` to compile Java source files with ``javac``,
generate ``MANIFEST.MF`` files and write ``.jar`` archives.
"""

import os, re
import zipfile

from ondabuild.propertysupport import defineOption
from ondabuild.utils.process import call
from ondabuild.utils.outputhandler import ProcessOutputHandler
from ondabuild.utils.flatten import getStringList
from ondabuild.utils.fileutils import mkdir, deleteFile, openForWrite
from ondabuild.utils.consoleformatter import publishArtifact
from ondabuild.utils.buildexceptions import BuildException

import logging
log = logging.getLogger('utils.java')

# General java options
defineOption('java.home', None)

def normalizeJavaVersion(version):
	"""
	Converts a Java language level into the form ``javac`` accepts for ``-source``
	and ``-target``: ``1.N`` up to Java 8 and ``N`` from Java 9 onwards.

	>>> normalizeJavaVersion(8)
	'1.8'
	>>> normalizeJavaVersion('1.8')
	'1.8'
	>>> normalizeJavaVersion('VERSION_1_8')
	'1.8'
	>>> normalizeJavaVersion(' 11 ')
	'11'
	>>> normalizeJavaVersion('1.11')
	'11'
	>>> normalizeJavaVersion('VERSION_17')
	'17'
	>>> normalizeJavaVersion('')
	''
	>>> normalizeJavaVersion(None)
	''
	>>> normalizeJavaVersion('eight')
	Traceback (most recent call last):
	...
	ondabuild.utils.buildexceptions.BuildException: Invalid Java version "eight": expected a value such as 8, 1.8 or 11
	"""
	if version is None: return ''
	v = str(version).strip()
	if not v: return ''
	m = re.fullmatch(r'(?:VERSION_)?(?:1[._])?(\d+)', v)
	if not m or int(m.group(1)) < 1:
		raise BuildException('Invalid Java version "%s": expected a value such as 8, 1.8 or 11'%v)
	major = int(m.group(1))
	return '1.%d'%major if major <= 8 else str(major)

# Options for creating manifests
defineOption('jar.manifest.defaults', {})

_MANIFEST_HEADER_NAME = re.compile('[A-Za-z0-9][A-Za-z0-9_-]*')
_MANIFEST_MAX_LINE_BYTES = 72

def _manifestLines(key, value):
	""" Splits a header into lines of at most 72 UTF-8 bytes without splitting any character. """
	lines, current, currentLen = [], [], 0
	for ch in '%s: %s'%(key, value):
		b = ch.encode('utf-8')
		if currentLen+len(b) > _MANIFEST_MAX_LINE_BYTES:
			lines.append(b''.join(current))
			# continuation lines begin with a single space
			current, currentLen = [b' '], 1
		current.append(b)
		currentLen += len(b)
	lines.append(b''.join(current))
	return lines

def create_manifest(path, properties, options):
	""" Creates a jar manifest from a dictionary of header names and values.

	``Manifest-Version`` comes first, followed by the headers from the ``jar.manifest.defaults``
	option and then `properties` (which take precedence), sorted by name.

	@param path: the manifest file to write, or None to just return the contents

	@param properties: a map of manifest keys to (already expanded) values

	@param options: the resolved options, including ``jar.manifest.defaults``

	@return: the UTF-8 bytes of the manifest

	>>> create_manifest(None, {'Main-Class':'uk.blankaspect.onda.App', 'Application-Name':'onda'}, {'jar.manifest.defaults':{}})
	b'Manifest-Version: 1.0\\r\\nApplication-Name: onda\\r\\nMain-Class: uk.blankaspect.onda.App\\r\\n\\r\\n'

	>>> create_manifest(None, {' Application-Name ':' onda '}, {'jar.manifest.defaults':{'Application-Name':'common', 'Built-By':'ondabuild'}})
	b'Manifest-Version: 1.0\\r\\nApplication-Name: onda\\r\\nBuilt-By: ondabuild\\r\\n\\r\\n'

	>>> m = create_manifest(None, {'Class-Path':' '.join('lib/dependency-%d.jar'%i for i in range(10))}, {'jar.manifest.defaults':{}})
	>>> max(len(l) for l in m.split(b'\\r\\n'))
	72
	>>> m.replace(b'\\r\\n ', b'').split(b'\\r\\n')[1].endswith(b'lib/dependency-8.jar lib/dependency-9.jar')
	True

	>>> m = create_manifest(None, {'X-Title':'\\u00e9'*40}, {'jar.manifest.defaults':{}})
	>>> [len(l) for l in m.split(b'\\r\\n')]
	[21, 71, 19, 0, 0]
	>>> m.replace(b'\\r\\n ', b'').decode('utf-8').split('\\r\\n')[1] == 'X-Title: '+'\\u00e9'*40
	True

	>>> create_manifest(None, {'Main Class':'x'}, {'jar.manifest.defaults':{}})
	Traceback (most recent call last):
	...
	ondabuild.utils.buildexceptions.BuildException: Invalid manifest header name "Main Class": names may contain only letters, digits, "-" and "_"

	>>> create_manifest(None, {'Main-Class':'a\\nb'}, {'jar.manifest.defaults':{}})
	Traceback (most recent call last):
	...
	ondabuild.utils.buildexceptions.BuildException: Invalid value for manifest header "Main-Class": values must not contain newline or NUL characters
	"""
	fullmap = {}
	for source in [options['jar.manifest.defaults'] or {}, properties]:
		for key in source:
			fullmap[str(key).strip()] = str(source[key]).strip()

	for key, value in fullmap.items():
		if not _MANIFEST_HEADER_NAME.fullmatch(key):
			raise BuildException('Invalid manifest header name "%s": names may contain only letters, digits, "-" and "_"'%key)
		if len(key.encode('utf-8')) > 70:
			raise BuildException('Invalid manifest header name "%s": names must not exceed 70 bytes'%key)
		if any(c in value for c in '\r\n\0'):
			raise BuildException('Invalid value for manifest header "%s": values must not contain newline or NUL characters'%key)

	lines = _manifestLines('Manifest-Version', fullmap.pop('Manifest-Version', '1.0'))
	for key in sorted(fullmap):
		lines.extend(_manifestLines(key, fullmap[key]))
	contents = b''.join(l+b'\r\n' for l in lines)+b'\r\n'

	if path:
		with openForWrite(path, 'wb') as f:
			f.write(contents)
	return contents

# Options for javac
defineOption('javac.options', [])
defineOption('javac.source', '') # e.g. 1.8
defineOption('javac.target', '')
defineOption('javac.encoding', 'UTF-8') # best set explicitly, else it depends on the OS
defineOption('javac.debug', False)
defineOption('javac.warningsAsErrors', False)
defineOption('javac.sourcepath', [])

class JavacProcessOutputHandler(ProcessOutputHandler):
	"""
	Groups the output of ``javac`` into error and warning messages (each of which spans
	several lines), writes them to log files, and summarizes them in the build log.

	>>> h = JavacProcessOutputHandler('${JAR_DIR}/onda.jar')
	>>> for l in ['App.java:3: error: cannot find symbol', '    import uk.blankaspect.common.Missing;', '  symbol:   class Missing', '  location: package uk.blankaspect.common', '1 error']: h.handleLine(l, True)
	>>> h._summarize()[0]
	[('cannot find symbol: <class Missing> in <package uk.blankaspect.common>', [['App.java:3: cannot find symbol: <class Missing> in <package uk.blankaspect.common>', '    import uk.blankaspect.common.Missing;']])]
	"""
	def __init__(self, targetName, **kwargs):
		# the target name is passed in since a build usually has many javac invocations
		ProcessOutputHandler.__init__(self, 'javac', **kwargs)
		self._current = None
		self._chunks = []
		self._logbasename = None
		self._contents = ''
		self._targetName = targetName

	def setJavacLogBasename(self, path):
		self._logbasename = path
		return self

	def handleLine(self, l, isstderr=False):
		if l.strip().startswith('Note:'): return
		self._contents += l+'\n'

		l = l.rstrip()
		if not l: return
		if re.match(r'\d+ (errors?|warnings?)$', l): return
		if l.startswith('error: warnings found'): return
		if l.startswith('Picked up _JAVA_OPTIONS'): return
		if self._regexIgnore is not None and self._regexIgnore.match(l): return

		# anything else is part of an error or warning
		if not self._current or re.match(r'.*\.java:\d+: .*', l) or l.startswith(('error:', 'warning:')):
			self._current = [l]
			self._chunks.append(self._current)
		else:
			self._current.append(l)

	def _summarize(self):
		""" Returns (errors, warnings), each a list of (message, [occurrence lines]) grouped by message. """
		errs, warns = [], []
		for c in self._chunks:
			c = list(c)
			m = re.match(r'(.*\.java:\d+): *(?:(?:error|warning): *)?(.*)', c[0])
			if m:
				loc, msg = m.group(1), m.group(2)
			else:
				loc, msg = None, c[0]
			# merge common multi-line messages to give better diagnostics
			i = 1
			while i < len(c):
				if c[i].strip().startswith('symbol'):
					msg += ': <'+re.search('symbol *: *(.*)', c[i]).group(1)+'>'
					del c[i]
				elif c[i].strip().startswith('location'):
					msg += ' in <'+re.search('location *: *(.*)', c[i]).group(1)+'>'
					del c[i]
				elif c[i].strip() == '^':
					del c[i]
				else:
					i += 1

			iswarning = re.match(r'(.*\.java:\d+: )?warning: .*', c[0]) or (len(c) > 1 and 'to suppress this warning' in c[1])
			addto = warns if iswarning else errs
			existing = next((x[1] for x in addto if x[0] == msg), None)
			if existing is None:
				existing = []
				addto.append((msg, existing))
			existing.append([loc+': '+msg if loc else msg]+c[1:])
		return errs, warns

	def handleEnd(self, returnCode=None):
		assert self._logbasename, 'setJavacLogBasename must be called first'

		if self._contents:
			with open(self._logbasename+'.out', 'w', encoding='utf-8') as fo:
				fo.write(self._contents)

		errs, warns = self._summarize()
		errmsg = None
		if errs:
			errorsFile = self._logbasename+'-errors.txt'
			with open(errorsFile, 'w', encoding='utf-8') as fo:
				for msg, occurrences in errs:
					# log the first occurrence of each type of error, the rest only at INFO
					m = re.match('^(.*):([0-9]+): ', occurrences[0][0])
					self._log(logging.ERROR, '\njavac> '.join(occurrences[0]),
						m.group(1) if m else None, int(m.group(2)) if m else None)
					for x in occurrences[1:]:
						self._log(logging.INFO, 'similar error: \n    %s'%('\n    '.join(x)))
					fo.write('- %s\n\n'%msg)
					for x in occurrences:
						self._errors.append(x[0])
						fo.write('\n'.join(x)+'\n')
					fo.write('\n')
			first = errs[0][1][0][0]
			errmsg = re.sub('^(.*\\.java:\\d+): (.*)$', r'\2 at \1', first)
			self._log(logging.ERROR, '%d javac ERRORS in %s - see %s'%(sum(len(x[1]) for x in errs), self._targetName, errorsFile),
				errorsFile)
			publishArtifact('javac %s errors'%self._targetName, errorsFile)

		if warns:
			warningsFile = self._logbasename+'-warnings.txt'
			count = sum(len(x[1]) for x in warns)
			self._log(logging.WARNING, '%d javac WARNINGS in %s - see %s; first is: %s'%(count, self._targetName, warningsFile, warns[0][1][0][0]),
				warningsFile)
			self._warnings.extend(x2[0] for x in warns for x2 in x[1])
			with open(warningsFile, 'w', encoding='utf-8') as fo:
				for msg, occurrences in warns:
					fo.write('- %s\n\n'%msg)
					for x in occurrences:
						fo.write('\n'.join(x)+'\n')
			if not errmsg and returnCode:
				errmsg = warns[0][1][0][0]
				if count > 1:
					errmsg = 'Failed due to %d warnings, first is: %s'%(count, errmsg)
				# warnings are only worth publishing if they caused a failure
				publishArtifact('javac %s warnings'%self._targetName, warningsFile)

		if errmsg:
			msg = errmsg
			if len(self._errors) > 1:
				msg = '%d errors, first is: %s'%(len(self._errors), errmsg)
		elif returnCode:
			msg = 'javac failed with return code %s'%returnCode
			if self.getLastOutputLine(): msg += '; last line was: %s'%self.getLastOutputLine()
		else:
			return

		if self._contents:
			publishArtifact('javac %s output'%self._targetName, self._logbasename+'.out')
		raise BuildException(msg)

defineOption('javac.outputHandlerFactory', JavacProcessOutputHandler)

def _quoteArgFileEntry(a):
	return '"%s"'%a.replace('\\', '\\\\').replace('"', '\\"')

def javac(output, inputs, classpath, options, logbasename, targetname, workDir, sourcepath=None):
	""" Compiles Java source files to class files, raising BuildException if compilation fails.

	@param output: the directory to put the class files in (will be created)

	@param inputs: list of paths to be compiled; only ``.java`` files are used

	@param classpath: the classpath to compile against, as an os.pathsep-separated string

	@param options: the resolved options, including ``javac.*`` and ``java.home``

	@param logbasename: absolute path and filename prefix for the ``.out``, ``-errors.txt``
		and ``-warnings.txt`` log files

	@param targetname: the name of the target, for messages

	@param workDir: a directory for temporary files such as the argument file

	@param sourcepath: a list of absolute directories that are searched for sources of
		classes referenced by the inputs; these are compiled too if needed
	"""
	assert logbasename and '$' not in logbasename
	logbasename = os.path.normpath(logbasename)
	mkdir(output)
	mkdir(os.path.dirname(logbasename))

	if options['java.home']:
		javacpath = os.path.join(options['java.home'], 'bin', 'javac')
	else:
		javacpath = 'javac' # from the PATH

	args = ['-d', output]
	source, target = normalizeJavaVersion(options['javac.source']), normalizeJavaVersion(options['javac.target'])
	if source: args.extend(['-source', source])
	if target: args.extend(['-target', target])
	if options['javac.encoding']: args.extend(['-encoding', options['javac.encoding']])
	if options['javac.debug']:
		args.append('-g')
	if options['javac.warningsAsErrors']:
		args.append('-Werror')
	args.extend(getStringList(options['javac.options']))
	if classpath: args.extend(['-cp', classpath])
	if sourcepath: args.extend(['-sourcepath', os.pathsep.join(sourcepath)])
	args.extend(x for x in inputs if x.endswith('.java'))

	# the argument file avoids command line length limits
	mkdir(workDir)
	argsfile = os.path.join(workDir, 'javac_args.txt')
	with openForWrite(argsfile, 'w', encoding='utf-8') as f:
		for a in args:
			f.write(_quoteArgFileEntry(a)+'\n')

	log.info('Executing javac for %s, writing output to %s: %s', targetname, logbasename+'.out', ''.join('\n\t"%s"'%x for x in [javacpath]+args))

	for suffix in ['-errors.txt', '-warnings.txt', '.out']:
		deleteFile(logbasename+suffix)

	success = False
	try:
		outputHandler = (options.get('javac.outputHandlerFactory') or JavacProcessOutputHandler)(targetname, options=options)
		if hasattr(outputHandler, 'setJavacLogBasename'):
			outputHandler.setJavacLogBasename(logbasename)
		call([javacpath, '@%s'%argsfile], outputHandler=outputHandler, outputEncoding='UTF-8', cwd=output, options=options)
		if not os.listdir(output):
			raise EnvironmentError('javac command failed to create any class files (but returned no error code); see output at "%s"'%(logbasename+'.out'))
		success = True
	finally:
		if not success:
			if classpath: log.info('Classpath for failed javac was: \n   %s', '\n   '.join(classpath.split(os.pathsep)))
			if sourcepath: log.info('Sourcepath for failed javac was: \n   %s', '\n   '.join(sourcepath))

def _zipInfoForDir(arcname, date_time):
	info = zipfile.ZipInfo(arcname, date_time=date_time)
	info.external_attr = (0o40755 << 16) | 0x10 # MS-DOS directory flag
	info.compress_type = zipfile.ZIP_STORED
	return info

def jar(path, manifest, sourcedir, options):
	""" Writes a jar file containing a manifest and the contents of a directory.

	The manifest comes first (as jar tools expect), followed by the other entries in
	sorted order so the archive does not depend on the file system's ordering.
	Directories are stored and files are compressed.

	@param path: the jar file to create; any existing file is replaced

	@param manifest: path to the manifest file, or None to create a plain zip with no manifest

	@param sourcedir: the directory to pack, or None

	@param options: the resolved options
	"""
	mkdir(os.path.dirname(path))
	deleteFile(path)

	entries = []
	if sourcedir:
		for root, dirs, files in os.walk(sourcedir):
			rel = os.path.relpath(root, sourcedir).replace(os.sep, '/')
			rel = '' if rel == '.' else rel+'/'
			entries.extend((rel+d+'/', os.path.join(root, d)) for d in dirs)
			entries.extend((rel+f, os.path.join(root, f)) for f in files)
	entries.sort()

	log.info('Writing %d entries to jar %s', len(entries)+(2 if manifest else 0), path)
	with zipfile.ZipFile(path, 'w', zipfile.ZIP_DEFLATED) as zf:
		if manifest:
			manifestInfo = zipfile.ZipInfo.from_file(manifest, 'META-INF/MANIFEST.MF')
			manifestInfo.compress_type = zipfile.ZIP_DEFLATED
			zf.writestr(_zipInfoForDir('META-INF/', manifestInfo.date_time), b'')
			with open(manifest, 'rb') as m:
				zf.writestr(manifestInfo, m.read())

		for arcname, src in entries:
			if manifest and arcname.upper() in ['META-INF/', 'META-INF/MANIFEST.MF']:
				if arcname.endswith('.MF') or arcname.endswith('.mf'):
					log.warning('Ignoring %s from %s since the jar already has a generated manifest', arcname, sourcedir)
				continue
			info = zipfile.ZipInfo.from_file(src, arcname)
			if info.is_dir():
				zf.writestr(_zipInfoForDir(arcname, info.date_time), b'')
			else:
				info.compress_type = zipfile.ZIP_DEFLATED
				with open(src, 'rb') as s:
					zf.writestr(info, s.read())
