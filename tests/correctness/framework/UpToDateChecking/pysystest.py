__pysys_title__   = r""" Up-to-date checking - sourcepath changes and implicit inputs cause a rebuild """
#                        ================================================================================

__pysys_purpose__ = r""" A jar is not rebuilt when nothing has changed, but is rebuilt when a source file
	on the sourcepath is newer than the jar, or when a property used in the manifest changes.
	"""

__pysys_groups__  = "java"

import os, shutil

import pysys
from pysys.constants import *
from ondabuildtest.ondabuild_basetest import OndabuildBaseTest

class PySysTest(OndabuildBaseTest):
	def execute(self):
		self.createFakeJDK()
		shutil.copytree(self.input+'/common', self.output+'/common')
		common = 'COMMON_DIR='+self.output+'/common'

		self.ondabuild(args=[common], stdouterr='1-build')
		self.ondabuild(args=[common], stdouterr='2-noop')

		jar = self.output+'/build-output/app.jar'
		newer = os.path.getmtime(jar)+5
		os.utime(self.output+'/common/src/uk/blankaspect/common/Util.java', (newer, newer))
		self.ondabuild(args=[common], stdouterr='3-sourcepath-changed')

		self.ondabuild(args=[common, 'MAIN_CLASS=uk.blankaspect.test.Other'], stdouterr='4-manifest-changed')

	def validate(self):
		self.assertGrep('1-build.out', expr=r'ONDABUILD SUCCEEDED: 1 built \(0 up-to-date\)')

		self.assertGrep('2-noop.out', expr=r'Target is already up-to-date: <Jar> \$\{OUTPUT_DIR\}/app.jar')
		self.assertGrep('2-noop.out', expr=r'ONDABUILD SUCCEEDED: <NO TARGETS> built \(1 up-to-date\)')

		self.assertGrep('3-sourcepath-changed.log', expr=r'Up-to-date check: \$\{OUTPUT_DIR\}/app.jar must be rebuilt because input file ".*Util.java" is newer than ".*app.jar"')
		self.assertGrep('3-sourcepath-changed.out', expr=r'ONDABUILD SUCCEEDED: 1 built')

		self.assertGrep('4-manifest-changed.log', expr=r'Up-to-date check: \$\{OUTPUT_DIR\}/app.jar must be rebuilt because implicit inputs file has changed')
		self.assertGrep('4-manifest-changed.log', expr=r'\+ manifest = .*uk.blankaspect.test.Other')
		self.assertGrep('4-manifest-changed.out', expr=r'ONDABUILD SUCCEEDED: 1 built')
