# targetwrapper - the scheduler's per-target state, including up-to-date checking
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

import os
from stat import S_ISDIR

from ondabuild.basetarget import BaseTarget
from ondabuild.buildcommon import isDirPath
from ondabuild.utils.fileutils import deleteFile, mkdir, openForWrite, getmtime, getstat

import logging
log = logging.getLogger('scheduler.targetwrapper')
uptodatelog = logging.getLogger('uptodate')

class TargetWrapper(object):
	"""
	Wraps a target with the state the scheduler needs while building it.
	"""

	__slots__ = 'target', 'path', 'name', 'isDirPath', 'stampfile', '__scheduler', '__targetdeps', '__nontargetdeps', '__rdeps', '__isdirty', '__implicitInputs', '__implicitInputsFile'

	__uptodate_log_count = 0

	def __init__(self, target, scheduler):
		self.target = target
		self.path = target.path
		self.name = target.name
		self.isDirPath = isDirPath(target.name)
		self.__scheduler = scheduler

		self.__rdeps = []
		"""TargetWrappers that depend on this one"""

		self.__isdirty = False
		self.__implicitInputs = None

		self.__targetdeps = None
		"""TargetWrappers this one depends on, sorted by name. Only available after resolveUnderlyingDependencies. """

		self.__nontargetdeps = None
		"""Sorted (abspath, pathset) pairs for dependencies that are not targets. Only available after resolveUnderlyingDependencies. """

		self.__implicitInputsFile = self.__getImplicitInputsFile()
		# directories need a stamp file, so reuse this one
		self.stampfile = self.__implicitInputsFile if self.isDirPath else self.target.path

	def __hash__(self): return hash(self.target)
	def __lt__(self, other): return self.target.path < other.target.path

	def __str__(self): return '%s'%self.target
	def __repr__(self): return 'TargetWrapper.%s'%str(self)

	def __getattr__(self, name):
		# a TargetWrapper is sometimes passed to BuildException, which reads its location
		if name == 'location': return self.target.location
		raise AttributeError('Unknown attribute %s'%name)

	def __getImplicitInputsFile(self):
		# beside the work dir rather than inside it, since the work dir is deleted before each build
		x = self.target.workDir.replace('\\', '/').split('/')
		return os.path.normpath('/'.join(x[:-1])+'/implicit-inputs/'+x[-1]+'.txt')

	def __getImplicitInputs(self, context):
		if self.__implicitInputs is not None: return self.__implicitInputs

		x = [wrapper.path for wrapper in self.__targetdeps]+[abspath for abspath, pathset in self.__nontargetdeps]
		# one item per line, with any embedded line breaks made explicit
		for line in self.target.getHashableImplicitInputs(context):
			x.extend(l.replace('\r', '\\r') for l in line.split('\n'))

		self.__implicitInputs = x
		return x

	def getTargetDependencies(self):
		"""
		Returns the TargetWrappers of the targets this one depends on.
		"""
		self.resolveUnderlyingDependencies()
		return self.__targetdeps

	def resolveUnderlyingDependencies(self):
		"""
		Resolves the target's dependencies into target and non-target dependencies,
		and registers this wrapper as a reverse dependency of each target dependency.

		Idempotent.
		"""
		if self.__nontargetdeps is not None: return

		scheduler = self.__scheduler
		targetdeps = {} # path:wrapper, for de-duplication
		nontargetdeps = {}

		for abspath, pathset in self.target._resolveUnderlyingDependencies(scheduler.context):
			dtargetwrapper = scheduler.targetwrappers.get(abspath)
			if dtargetwrapper is None:
				nontargetdeps.setdefault(abspath, pathset)
			elif abspath not in targetdeps and abspath != self.path:
				targetdeps[abspath] = dtargetwrapper
				dtargetwrapper.__rdeps.append(self)

		# sorted for a deterministic order
		self.__nontargetdeps = sorted(nontargetdeps.items(), key=lambda item: item[0])
		self.__targetdeps = sorted(targetdeps.values(), key=lambda wrapper: wrapper.name)

	def findMissingNonTargetDependencies(self):
		"""
		Checks the non-target dependencies exist, and that directories (and only directories)
		have a trailing slash.

		@return: (path, message) for the first problem, or None
		"""
		for dpath, pathset in self.__nontargetdeps:
			dstat = getstat(dpath)
			if dstat is False:
				return dpath, 'Missing dependency'
			if isDirPath(dpath) != S_ISDIR(dstat.st_mode):
				return dpath, 'Trailing slash is required for directories, and not permitted for files'
		return None

	def dirty(self):
		"""
		Marks this target as needing a rebuild, without doing any up-to-date checks.

		@return: the previous dirty value, i.e. True if this was a no-op
		"""
		r = self.__isdirty
		self.__isdirty = True
		return r

	def rdeps(self):
		""" Returns the TargetWrappers that depend on this one. """
		return self.__rdeps

	def uptodate(self, context):
		"""
		Returns True if the target is up to date and does not need to be rebuilt.

		Must not be called until all target dependencies have been built.
		"""
		if self.__isdirty:
			log.debug('Up-to-date check: %s has been marked dirty', self.name)
			return False

		pathstat = getstat(self.path)
		if pathstat is False:
			log.info('Up-to-date check: %s must be built because file does not exist: "%s"', self.name, self.path)
			self.__isdirty = True
			return False

		reason = self.__implicitInputsChange(context) or self.__newerInput(pathstat.st_mtime)
		if not reason: return True

		# the first few reasons are interesting enough to show on the console
		TargetWrapper.__uptodate_log_count += 1
		(uptodatelog.critical if TargetWrapper.__uptodate_log_count <= 5 else uptodatelog.info)(
			'Up-to-date check: %s must be rebuilt because %s', self.name, reason)
		return False

	def __implicitInputsChange(self, context):
		""" Returns why the recorded implicit inputs do not match the current ones, or None if they do. """
		current = self.__getImplicitInputs(context)
		if not current and not self.isDirPath: return None

		if not os.path.isfile(self.__implicitInputsFile):
			return 'implicit inputs/stamp file does not exist: "%s"'%self.__implicitInputsFile
		with open(self.__implicitInputsFile, 'r', encoding='utf-8') as f:
			previous = f.read().split('\n')
		if previous == current: return None
		return 'implicit inputs file has changed: "%s"\n\t%s\n'%(self.__implicitInputsFile,
			'\n\t'.join(describeLineChanges(previous, current, int(os.getenv('ONDABUILD_IMPLICIT_INPUTS_MAX_DIFF_LINES', '30')))))

	def __newerInput(self, targetmtime):
		""" Returns a description of the first input newer than this target, or None. """
		# a directory target has no meaningful timestamp, so its stamp file is used
		stampmtime = getmtime(self.__implicitInputsFile) if self.isDirPath else targetmtime

		inputs = [d.stampfile for d in self.__targetdeps]
		inputs.extend(path for path, pathset in self.__nontargetdeps if not isDirPath(path))
		for path in inputs:
			mtime = getmtime(path)
			if mtime > stampmtime:
				return 'input file "%s" is newer than "%s" (by %0.1f seconds)'%(path, self.stampfile, mtime-stampmtime)
		return None

	def run(self, context):
		"""
		Runs the target, recording its implicit inputs once it has succeeded.
		"""
		implicitInputs = self.__getImplicitInputs(context)
		deleteFile(self.__implicitInputsFile)

		self.target.run(context)

		if implicitInputs or self.isDirPath:
			log.debug('Writing implicitInputsFile: %s', self.__implicitInputsFile)
			mkdir(os.path.dirname(self.__implicitInputsFile))
			with openForWrite(self.__implicitInputsFile, 'wb') as f:
				f.write('\n'.join(implicitInputs).encode('utf-8'))

	def clean(self, context):
		""" Calls the target's clean method. """
		deleteFile(self.__implicitInputsFile)
		self.target.clean(context)

	def internal_clean(self, context):
		""" Deletes the target's output and work dir before a build, without calling target-specific cleaning. """
		deleteFile(self.__implicitInputsFile)
		BaseTarget.clean(self.target, context)

def describeLineChanges(previous, current, maxLines):
	"""
	Summarizes how a list of lines has changed, for explaining why a target is rebuilt.

	At most maxLines lines are listed (half removals and half additions), keeping the last
	ones since the end of an implicit inputs file is usually the most informative.

	>>> describeLineChanges(['a', 'b'], ['a', 'c'], 30)
	['previous build had 2 lines, current build has 2 lines', '- b', '+ c']
	>>> describeLineChanges(['x'], ['1', '2', '3', 'x'], 4)
	['previous build had 1 lines, current build has 4 lines', '...', '+ 2', '+ 3']
	>>> describeLineChanges(['a', 'a'], ['a'], 30)
	['previous build had 2 lines, current build has 1 lines', 'N/A']
	"""
	half = maxLines//2
	removed = ['- %s'%x for x in previous if x not in current]
	added = ['+ %s'%x for x in current if x not in previous]
	if len(removed) > half: removed = ['...']+removed[len(removed)-half:]
	if len(added) > half: added = ['...']+added[len(added)-half:]
	return ['previous build had %d lines, current build has %d lines'%(len(previous), len(current))]+(removed+added or ['N/A'])
