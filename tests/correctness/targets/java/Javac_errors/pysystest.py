__pysys_title__   = r""" Javac - compilation errors and warnings are summarized and logged """
#                        ================================================================================

__pysys_purpose__ = r""" A missing class gives a one-line failure naming the symbol, package and source
	location, with the details in the javac logs. Warnings are logged, and fail the target only
	when javac.warningsAsErrors is enabled.
	"""

__pysys_groups__  = "java"

import pysys
from pysys.constants import *
from ondabuildtest.ondabuild_basetest import OndabuildBaseTest

class PySysTest(OndabuildBaseTest):
	def execute(self):
		self.createFakeJDK()
		self.errorsFailure = self.ondabuild(buildfile='errors.ondabuild.py', stdouterr='errors', shouldFail=True)
		self.warningsFailure = self.ondabuild(buildfile='warnings.ondabuild.py', stdouterr='warnings', args=['-k'], shouldFail=True)

	def validate(self):
		logs = 'build-output/BUILD_WORK/javac_logs/'

		self.assertThat('re.match(expected, failure)', failure=self.errorsFailure, expected=
			r'Target FAILED: <Jar> \$\{OUTPUT_DIR\}/errors.jar : cannot find symbol: <class Missing> in <package uk.blankaspect.common> at .*App.java:4$')
		self.assertGrep('errors.log', expr=r'1 javac ERRORS in \$\{OUTPUT_DIR\}/errors.jar - see .*-errors.txt')
		self.assertGrep(logs+'_OUTPUT_DIR_.errors.jar-errors.txt', expr=r'^- cannot find symbol: <class Missing> in <package uk.blankaspect.common>$')
		self.assertGrep(logs+'_OUTPUT_DIR_.errors.jar-errors.txt', expr=r'import uk.blankaspect.common.Missing;', literal=True)
		self.assertGrep(logs+'_OUTPUT_DIR_.errors.jar.out', expr=r'1 error')
		self.assertPathExists('build-output/errors.jar', exists=False)

		self.assertThat('re.match(expected, failure)', failure=self.warningsFailure, expected=
			r'Target FAILED: <Jar> \$\{OUTPUT_DIR\}/warn-fail.jar : .*Legacy.java:5: \[fake\] deprecated API in use$')
		self.assertGrep('warnings.log', expr=r'1 javac WARNINGS in \$\{OUTPUT_DIR\}/warn-ok.jar - see .*_OUTPUT_DIR_.warn-ok.jar-warnings.txt; first is: .*Legacy.java:5: \[fake\] deprecated API in use')
		self.assertPathExists('build-output/warn-ok.jar')
		self.assertPathExists('build-output/warn-fail.jar', exists=False)
		self.assertGrep('warnings.out', expr=r'ONDABUILD FAILED: 1 error\(s\)')
