# scheduler - works out which targets need building, and builds them in dependency order
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

import sys, os, time, traceback

from ondabuild.buildcommon import ONDABUILD_VERSION, isDirPath
from ondabuild.buildcontext import BuildContext
from ondabuild.utils.buildexceptions import BuildException
from ondabuild.internal.targetwrapper import TargetWrapper
from ondabuild.utils.fileutils import deleteFile, mkdir

import logging
log = logging.getLogger('scheduler')

class BuildScheduler(object):
	"""
	Takes the targets defined by the build files and the set selected on the command line,
	resolves their dependencies, and cleans or builds them one at a time in dependency order.
	"""

	def __init__(self, init, targets, options):
		"""
		@param init: the BuildInitializationContext
		@param targets: the selected targets (BaseTarget objects)
		@param options: the build options, a dict with keys such as ``clean``, ``keep-going`` and ``dry-run``
		"""
		self.targetTimes = {} # name:(path, seconds)
		self.targetwrappers = {} # resolved path:TargetWrapper
		self.options = options
		self.built = 0
		self.completed = 0 # built plus up-to-date
		self.ordered = None

		width = str(len(str(len(init.targets()))))
		self.progressFormat = '*** %'+width+'d/%'+width+'d '

		caseInsensitivePaths = set()
		outputDirs = init.getOutputDirs()
		for t in init.targets().values():
			try:
				t._resolveTargetPath(init)

				if t.path.lower() in caseInsensitivePaths:
					raise BuildException('Duplicate target path "%s"'%t.path)
				caseInsensitivePaths.add(t.path.lower())

				for o in outputDirs:
					if t.path.rstrip('\\/') == o.rstrip('\\/'):
						raise BuildException('Cannot use shared output directory for target: directory targets must always build to a dedicated directory')

				self.targetwrappers[t.path] = TargetWrapper(t, self)
			except Exception as e:
				if not isinstance(e, (BuildException, EnvironmentError)):
					log.exception('FAILED to prepare target %s: '%t)
				raise BuildException('FAILED to prepare target %s'%t, causedBy=True, location=t.location)

		self.context = BuildContext(init, set(self.targetwrappers))
		self.context._buildOptions = options

		for dtarget in self.targetwrappers:
			if isDirPath(dtarget):
				for t in self.targetwrappers:
					if t.lower().startswith(dtarget.lower()) and t != dtarget:
						raise BuildException('Multiple targets are not permitted to write output to the same directory: "%s" and "%s"'%(
							self.targetwrappers[dtarget].name, self.targetwrappers[t].name), location=self.targetwrappers[t].target.location)

		# sorted for a stable order
		self.selected = sorted(self.targetwrappers[t.path] for t in targets)

	def _handle_error(self, target, prefix='Target FAILED'):
		"""
		Logs the exception being handled and returns a list of messages for the build's error list.

		@param target: the BaseTarget (not TargetWrapper) that failed
		@param prefix: what was being done when it failed
		"""
		e = sys.exc_info()[1]
		if not isinstance(e, BuildException):
			e = BuildException('%s due to %s'%(prefix, e.__class__.__name__), causedBy=True)
		log.debug('Handling error: %s', traceback.format_exc())
		log.error('%s: %s\n', prefix, e.toMultiLineString(target, includeStack=True), extra=e.getLoggerExtraArgDict(target))
		return ['%s: %s'%(prefix, e.toSingleLineString(target))]

	def _expand_deps(self):
		"""
		Resolves the dependencies of the selected targets and of every target they
		depend on, checking that non-target dependencies exist.

		@return: the list of errors
		"""
		errors = []
		pending = list(self.selected)
		seen = set(pending)
		index = 0
		while pending:
			targetwrapper = pending.pop(0)
			index += 1
			log.info(self.progressFormat+'Resolving dependencies for %s', index, len(seen), targetwrapper)
			try:
				targetwrapper.resolveUnderlyingDependencies()
				for dtargetwrapper in targetwrapper.getTargetDependencies():
					if dtargetwrapper not in seen:
						seen.add(dtargetwrapper)
						pending.append(dtargetwrapper)

				missingdep = targetwrapper.findMissingNonTargetDependencies()
				if missingdep is not None:
					missingdep, missingdeperror = missingdep
					ex = BuildException('%s: %s'%(missingdeperror, missingdep))
					log.error('FAILED during dependency resolution: %s', ex.toMultiLineString(targetwrapper, includeStack=False), extra=ex.getLoggerExtraArgDict(targetwrapper))
					errors.append(ex.toSingleLineString(targetwrapper))
			except Exception:
				errors.extend(self._handle_error(targetwrapper.target, prefix='Target FAILED during dependency resolution'))
		return errors

	def _orderTargets(self):
		"""
		Returns the selected targets and all their dependencies, ordered so that each
		target comes after the targets it depends on.

		Raises BuildException if there is a dependency cycle.
		"""
		ordered, done = [], set()
		for root in self.selected:
			if root in done: continue
			# (wrapper, iterator over its deps) pairs; the stack is the current dependency chain
			stack = [(root, iter(root.getTargetDependencies()))]
			onstack = {root}
			while stack:
				top, deps = stack[-1]
				for d in deps:
					if d in done: continue
					if d in onstack:
						chain = [w for w, _ in stack]
						cycle = chain[chain.index(d):]
						log.error('Build FAILED due to %d-target dependency cycle: \n   %s\n', len(cycle), '\n   '.join(w.name for w in cycle))
						raise BuildException('Build failed due to %d-target dependency cycle: %s'%(len(cycle), ', '.join(w.name for w in cycle)))
					stack.append((d, iter(d.getTargetDependencies())))
					onstack.add(d)
					break
				else: # all deps of top are done
					stack.pop()
					onstack.discard(top)
					done.add(top)
					ordered.append(top)
		return ordered

	def _writeSelectedTargetsInfo(self):
		targetinfodir = mkdir(self.context.expandPropertyValues('${BUILD_WORK_DIR}/targets/'))
		with open(os.path.join(targetinfodir, 'ondabuild-version.properties'), 'w', encoding='utf-8') as f:
			# in case mixing ondabuild versions in one working dir needs to be detected
			f.write('ondabuildVersion=%s\n'%ONDABUILD_VERSION)
		with open(os.path.join(targetinfodir, 'selected-targets.txt'), 'w', encoding='utf-8') as f:
			f.write('%d targets selected for building:\n'%len(self.ordered))
			for targetwrapper in self.ordered:
				deps = targetwrapper.getTargetDependencies()
				f.write('- Target %s depends on: %s\n\n'%(targetwrapper,
					', '.join(str(d) for d in deps) if deps else '<no dependencies>'))

	def _run_target(self, target):
		"""
		Cleans or runs a single target.

		@param target: the TargetWrapper
		@return: a list of errors
		"""
		errors = []
		log.info('%s: executing', target.name)
		starttime = time.time()
		if self.options['clean']:
			try:
				target.clean(self.context)
			except Exception:
				errors.extend(self._handle_error(target.target, prefix='Target clean FAILED'))
		else:
			# always clean first, so junk from a previous failed build cannot affect this one
			try:
				log.debug('%s: Performing pre-execution clean', target.name)
				target.internal_clean(self.context)
			except Exception:
				errors.extend(self._handle_error(target.target, prefix='Target pre-execution clean FAILED'))

			if not errors:
				try:
					target.run(self.context)
				except Exception:
					errors.extend(self._handle_error(target.target))
					# the stamp file must go so the target is rebuilt next time, but the output and
					# work dir are kept since they may help diagnose the failure
					try:
						deleteFile(target.stampfile)
					except Exception:
						errors.extend(self._handle_error(target.target, prefix='ERROR deleting target stampfile after target failure'))

		duration = time.time()-starttime
		if not self.options['clean']:
			self.targetTimes[target.name] = (target.path, duration)
		log.critical('    %s: done in %.1f seconds', target.name, duration)
		return errors

	def _build(self):
		"""
		Cleans or builds each target in order. After a failure, stops unless keep-going
		is set, in which case only the targets that depend on the failed one are skipped.

		@return: the list of errors
		"""
		errors = []
		failed = set()
		total = len(self.ordered)
		for index, target in enumerate(self.ordered, 1):
			try:
				brokenDeps = [d for d in target.getTargetDependencies() if d in failed]
				if brokenDeps and not self.options['clean']:
					log.warning('Skipping %s because dependency %s failed', target, brokenDeps[0])
					failed.add(target)
					continue

				if self.options['clean'] or not target.uptodate(self.context):
					log.critical(self.progressFormat+('Cleaning %s' if self.options['clean'] else 'Building %s'), index, total, target)
					targetErrors = []
					if not self.options['dry-run']:
						targetErrors = self._run_target(target)
					if targetErrors:
						errors.extend(targetErrors)
						failed.add(target)
						if not self.options['keep-going']: break
						continue
					# anything that depends on this must be rebuilt too
					for rd in target.rdeps():
						if not rd.dirty():
							log.info('Up-to-date check: %s must be rebuilt due to change in dependency %s', rd.name, target)
					self.built += 1
				else:
					log.critical(self.progressFormat+'Target is already up-to-date: %s', index, total, target)
				self.completed += 1
			except Exception:
				errors.extend(self._handle_error(target.target, prefix='Target FAILED'))
				failed.add(target)
				if not self.options['keep-going']: break
		return errors

	def run(self):
		"""
		Runs the clean or build.

		@return: (errors, built, completed, total)
		"""
		if self.options['clean']:
			# cleaning does not need dependencies, which may not exist any more
			self.ordered = list(self.selected)
			return self._build(), self.built, self.completed, len(self.ordered)

		log.critical('Starting dependency resolution phase')
		depstime = time.time()
		deperrors = self._expand_deps()
		if deperrors:
			# even with keep-going, targets whose dependencies could not be resolved cannot be ordered
			return deperrors, 0, 0, len(self.selected)

		self.ordered = self._orderTargets()
		self._writeSelectedTargetsInfo()
		log.info('Dependency resolution took %0.1f seconds', time.time()-depstime)

		log.critical('Starting build execution phase')
		builderrors = self._build()
		return builderrors, self.built, self.completed, len(self.ordered)
