# fileutils - helper methods related to the file system
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

import shutil, os, time, platform
import stat, errno
import io

from ondabuild.utils.flatten import getStringList

import logging
log = logging.getLogger('fileutils')

__isWindows = platform.system()=='Windows'

if __isWindows: # files written with the POSIX API race with readers using the Win32 API (e.g. javac), so write with Win32
	import win32file
	class Win32FileWriter(io.RawIOBase):
		def __init__(self, dest, mode='w', encoding=None, errors=None, newline=None):
			super(Win32FileWriter, self).__init__()
			assert 'w' in mode, 'Win32FileWriter only supports writing'
			self.dest = dest
			self.__textWrapper = None if 'b' in mode else io.TextIOWrapper(self, encoding=encoding, errors=errors, newline=newline)
			self.__closed = False

		def __enter__(self):
			self.Fd = win32file.CreateFile(self.dest, win32file.GENERIC_WRITE,
				win32file.FILE_SHARE_READ | win32file.FILE_SHARE_WRITE | win32file.FILE_SHARE_DELETE,
				None, win32file.CREATE_ALWAYS, win32file.FILE_ATTRIBUTE_NORMAL, None)
			if self.__textWrapper is not None: return self.__textWrapper
			return self

		def writable(self): return True
		def write(self, data):
			err, byteswritten = win32file.WriteFile(self.Fd, data)
			return byteswritten

		def close(self):
			if self.__closed: return
			self.__closed = True
			if self.__textWrapper is not None: self.__textWrapper.close()
			win32file.CloseHandle(self.Fd)

		def __exit__(self, ex_type, ex_val, tb):
			self.close()

	openForWrite = Win32FileWriter
else:
	openForWrite = open
"""
Opens a file for writing, with the same arguments as `open`. Must be used in a `with` clause.

Use this instead of `open` for files that other tools will read, such as javac argument files.
"""

_RETRY_DELAY_SECS = 5

def mkdir(newdir):
	""" Creates a directory and any missing parents, unless it already exists.

	@return: newdir, so calls can be chained
	"""
	if os.path.isfile(newdir):
		raise IOError('Cannot create directory "%s" because a file of that name already exists'%newdir)
	os.makedirs(newdir, exist_ok=True)
	return newdir

def _retryOnce(action, path, allowRetry):
	# deletions on Windows often fail briefly, e.g. while a virus checker has a file open
	try:
		action(path)
	except OSError as e:
		if not allowRetry: raise
		log.warning('Failed to delete %s (%s), will retry in %d seconds', path, e, _RETRY_DELAY_SECS)
		time.sleep(_RETRY_DELAY_SECS)
		action(path)
		log.info('Deleted successfully on retry: %s', path)

def _chmodAndRetry(func, path, excinfo):
	# read-only files cannot be deleted on Windows until they are made writable
	if func in (os.rmdir, os.remove, os.unlink) and getattr(excinfo[1], 'errno', None) == errno.EACCES:
		os.chmod(path, stat.S_IRWXU | stat.S_IRWXG | stat.S_IRWXO)
		func(path)
	else:
		raise excinfo[1]

def _removeTree(path):
	if os.path.exists(path): shutil.rmtree(path, onerror=_chmodAndRetry)

def _removeFile(path):
	if os.path.lexists(path): os.remove(path)

def deleteDir(path, allowRetry=True):
	""" Deletes a directory and everything in it. Does nothing if it does not exist.

	@param allowRetry: try once more a few seconds after a failure
	"""
	if os.path.isfile(path):
		raise OSError('Cannot delete directory "%s" because it is a file'%path)
	_retryOnce(_removeTree, path, allowRetry)

def deleteFile(path, allowRetry=True):
	""" Deletes a file. Does nothing if it does not exist.

	@param allowRetry: try once more a few seconds after a failure
	"""
	if os.path.isdir(path):
		raise OSError('Cannot delete file "%s" because it is a directory'%path)
	_retryOnce(_removeFile, path, allowRetry)

def parsePropertiesFile(lines, excludeLines=None):
	"""
	Parses the lines of a ``.properties`` file, returning a list of (key, value, line number)
	tuples in file order.

	Text after ``#`` is a comment, as are lines starting with ``//``. Lines without ``=`` are ignored.

	@param lines: an open file or any iterable of lines

	@param excludeLines: a string or list of strings; keys containing any of them are skipped

	>>> parsePropertiesFile(['a','b=c',' z  =  x', 'a=d #foo', '#g=h'])
	[('b', 'c', 2), ('z', 'x', 3), ('a', 'd', 4)]
	>>> parsePropertiesFile(['a=b','c=d#foo','XfooX=e', 'f=h'], excludeLines=['foo','h'])
	[('a', 'b', 1), ('c', 'd', 2), ('f', 'h', 4)]
	"""
	excludeLines = getStringList(excludeLines)
	result = []
	for lineNo, line in enumerate(lines, 1):
		line = line.split('#', 1)[0].strip()
		if not line or line.startswith('//') or '=' not in line: continue

		key, value = (x.strip() for x in line.split('=', 1))
		if any(x in key for x in excludeLines):
			log.debug('Ignoring property line due to exclusion: %s', line)
		else:
			result.append((key, value.replace('\\\\', '\\'), lineNo))
	return result

def isDirPath(path):
	""" Returns true if the path is a directory, i.e. ends with a slash (or a backslash on Windows).

	>>> isDirPath(None)
	False
	>>> isDirPath('a/')
	True
	>>> isDirPath('a'+os.sep)
	True
	>>> isDirPath('a/onda.jar')
	False
	"""
	try:
		return path[-1] == '/' or path[-1] == os.sep
	except Exception:
		return False

def containsFiles(path, suffix=''):
	""" Returns true if the directory exists and has at least one file under it
	(in any subdirectory) whose name ends with the specified suffix.

	>>> containsFiles(os.path.join(os.path.dirname(__file__), 'no-such-dir'))
	False
	>>> containsFiles(os.path.dirname(__file__), '.py')
	True
	>>> containsFiles(os.path.dirname(__file__), '.java')
	False
	"""
	suffix = suffix.lower()
	for _, _, files in os.walk(path):
		if any(f.lower().endswith(suffix) for f in files): return True
	return False

def normPath(path):
	"""
	Returns a normalized version of the path, preserving any trailing
	slash (converted to os.sep). The drive letter is lower-cased on Windows so the same
	path typed into different shells is treated the same.

	>>> normPath('/a/b/../c/').replace(os.sep, '/')
	'/a/c/'
	>>> normPath('')
	''
	"""
	if not path: return path
	isDir = isDirPath(path)
	path = os.path.normpath(path)
	if __isWindows and len(path)>1 and path[1] == ':':
		path = path[0].lower()+path[1:]
	if isDir and not path.endswith(os.sep): path += os.sep
	return path

def getstat(path, errorIfMissing=False):
	""" Returns the os.stat result for the path, or False if it does not exist. """
	try:
		return os.stat(path)
	except OSError:
		if errorIfMissing:
			raise Exception('Cannot find path "%s"'%path)
		return False

def getmtime(path):
	""" Returns the modification time of a path that must exist. """
	return getstat(path, errorIfMissing=True).st_mtime
