import os, sys

from pysys.constants import *
from pysys.basetest import BaseTest
from pysys.utils.filegrep import filegrep

class OndabuildBaseTest(BaseTest):
	fakeJDKBin = None

	def createFakeJDK(self):
		"""
		Creates a javac executable in the output directory that runs the fake javac
		script, and adds it to the PATH of subsequent builds.

		@returns the bin directory containing javac
		"""
		if IS_WINDOWS: self.skipTest('the fake javac launcher is a POSIX shell script')
		bindir = self.mkdir(self.output+'/fakejdk/bin')
		javac = bindir+'/javac'
		with open(javac, 'w', encoding='utf-8', newline='\n') as f:
			f.write('#!/bin/sh\nexec "%s" "%s" "$@"\n'%(sys.executable, os.path.join(self.project.FAKE_JDK, 'javac.py')))
		os.chmod(javac, 0o755)
		self.fakeJDKBin = bindir
		return bindir

	def ondabuild(self, args=None, buildfile='test.ondabuild.py', shouldFail=False, stdouterr='ondabuild', env=None, setOutputDir=True, **kwargs):
		"""
		Runs ondabuild against the specified buildfile or test.ondabuild.py from the
		input dir. Produces output in the <testoutput>/build-output folder.

		@param buildfile: a path relative to the input dir, or an absolute path

		@param shouldFail: by default, the test will abort if the build fails.
		Set this to True if the build is expected to fail in which case
		the test will abort if it succeeds, and this method will return a
		string identifying the target or overall failure message if not.

		@param setOutputDir: pass OUTPUT_DIR on the command line; set to False to use the
		build file's own output directory

		@returns the failure message string if shouldFail=True, otherwise nothing
		"""
		stdout, stderr = self.allocateUniqueStdOutErr(stdouterr)
		args = args or []
		try:
			try:
				environs = self.createEnvirons(env, command=sys.executable)
				environs['PYTHONPATH'] = os.pathsep.join(p for p in [self.project.ONDABUILD_ROOT, os.getenv('PYTHONPATH', '')] if p)

				# need to inherit parent PATH so we can find a JDK if one is installed
				environs['PATH'] = environs['PATH']+os.pathsep+os.getenv('PATH', '')
				if self.fakeJDKBin:
					environs['PATH'] = self.fakeJDKBin+os.pathsep+environs['PATH']

				newargs = [
					'-m', 'ondabuild',
					'-f', os.path.join(self.input, buildfile),
					'--logfile', os.path.join(self.output, stdout.replace('.out', '')+'.log'),
					]
				if setOutputDir: newargs.append('OUTPUT_DIR=%s'%self.output+'/build-output')
				args = newargs+args

				result = self.startProcess(sys.executable, args,
					environs=environs,
					stdout=stdout, stderr=stderr, displayName=('ondabuild %s'%stdouterr).strip(),
					abortOnError=True, ignoreExitStatus=shouldFail, **kwargs)
				if shouldFail and result.exitStatus != 0: raise Exception('Build failed as expected')
			finally:
				self.logFileContents(stdout, tail=True) or self.logFileContents(stderr, tail=True)

		except AssertionError as e:
			self.log.exception('Assertion error: ')
			raise
		except Exception as e:
			m = None
			try:
				# these give the best messages
				m = filegrep(stdout, '(Target FAILED: .*)', returnMatch=True)
				if not m: m = filegrep(stdout, '(ONDABUILD FAILED: .*)', returnMatch=True)
				if m: m = m.group(1)
			except Exception as e2:
				if shouldFail: raise e2 # this is fatal if we need the error message
				self.log.exception('Error handling block failed: ')
			if not m: self.log.warning('Caught exception running build: %s', e)
			m = m or '<unknown failure>'

			if shouldFail:
				self.log.info('Build failed as expected; message is: %s', m)
				return m
			else:
				self.abort(BLOCKED, 'Build %s failed unexpectedly: %s'%(stdouterr, m))
		else:
			if shouldFail:
				self.abort(FAILED, 'build %s was expected to fail but succeeded'%stdouterr)

		return None
