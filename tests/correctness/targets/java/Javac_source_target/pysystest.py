__pysys_title__   = r""" Javac - source and target levels are normalized and passed to javac """
#                        ================================================================================

__pysys_purpose__ = r""" Java versions such as 8, 1.8 and VERSION_11 are converted to the form javac
	accepts, are omitted when not set, and give a clear error when invalid.
	"""

__pysys_groups__  = "java"

import struct

import pysys
from pysys.constants import *
from ondabuildtest.ondabuild_basetest import OndabuildBaseTest

class PySysTest(OndabuildBaseTest):
	def execute(self):
		self.createFakeJDK()
		self.ondabuild(stdouterr='source_target')
		self.failure = self.ondabuild(buildfile='invalid.ondabuild.py', stdouterr='invalid', shouldFail=True)

	def classVersion(self, outputDir):
		with open(self.output+'/build-output/%s/uk/blankaspect/test/App.class'%outputDir, 'rb') as f:
			return struct.unpack('>IHH', f.read(8))[2]

	def argsFile(self, outputDir):
		return self.output+'/build-output/BUILD_WORK/targets/Javac/_OUTPUT_DIR_.%s/javac_args.txt'%outputDir

	def validate(self):
		self.assertThat('classVersion == 52', classVersion=self.classVersion('default'))
		self.assertThat('classVersion == 52', classVersion=self.classVersion('java8'))
		self.assertThat('classVersion == 55', classVersion=self.classVersion('java11'))

		self.assertGrep(self.argsFile('default'), expr='"-(source|target)"', contains=False)
		self.assertOrderedGrep(self.argsFile('java8'), exprList=['^"-source"$', '^"1.8"$', '^"-target"$', '^"1.8"$', '^"-encoding"$', '^"UTF-8"$'])
		self.assertOrderedGrep(self.argsFile('java11'), exprList=['^"-source"$', '^"11"$', '^"-target"$', '^"11"$'])

		self.assertThat('failure.startswith(expected)', failure=self.failure,
			expected='Target FAILED: <Javac> ${OUTPUT_DIR}/invalid/ : Invalid Java version "abc"')
