__pysys_title__   = r""" Clean and rebuild - output directories are deleted and rebuilt """
#                        ================================================================================

__pysys_purpose__ = r""" """

__pysys_groups__  = "framework"

import pysys
from pysys.constants import *
from ondabuildtest.ondabuild_basetest import OndabuildBaseTest

class PySysTest(OndabuildBaseTest):
	def execute(self):
		self.ondabuild(stdouterr='1-build')
		self.assertPathExists('build-output/resources.jar')

		self.ondabuild(stdouterr='2-clean', args=['--clean'])
		self.assertPathExists('build-output', exists=False)

		self.ondabuild(stdouterr='3-rebuild', args=['--rebuild'])

	def validate(self):
		self.assertGrep('2-clean.out', expr=r'Cleaning <Jar> \$\{OUTPUT_DIR\}/resources.jar')
		self.assertGrep('3-rebuild.out', expr=r'Cleaning <Jar> \$\{OUTPUT_DIR\}/resources.jar')
		self.assertGrep('3-rebuild.out', expr=r'Starting full "release" build')
		self.assertGrep('3-rebuild.out', expr=r'ONDABUILD SUCCEEDED: 1 built')
		self.assertPathExists('build-output/resources.jar')
