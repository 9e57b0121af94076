__pysys_title__   = r""" XXX """
#                        ================================================================================

__pysys_purpose__ = r""" XXX
	"""

__pysys_groups__  = ""

import pysys
from pysys.constants import *
from ondabuildtest.ondabuild_basetest import OndabuildBaseTest

class PySysTest(OndabuildBaseTest):
	def execute(self):
		self.ondabuild(stdouterr='mytest', args=[])

	def validate(self):
		self.assertGrep('mytest.out', expr=r"XXX") # if no extra verifications are needed, instead use: self.addOutcome(PASSED)
