__pysys_title__   = r""" Build file errors - mistakes give a clear message and no build """
#                        ================================================================================

__pysys_purpose__ = r""" Undefined properties and options, missing dependencies, duplicate targets, invalid
	target names and command line values for undefined properties each fail with a message
	that identifies the problem.
	"""

__pysys_groups__  = "framework"

import pysys
from pysys.constants import *
from ondabuildtest.ondabuild_basetest import OndabuildBaseTest

class PySysTest(OndabuildBaseTest):
	def execute(self):
		self.failures = {}
		for name in ['undefined-property', 'unknown-option', 'missing-dependency', 'duplicate-target', 'bad-target-chars']:
			self.failures[name] = self.ondabuild(buildfile=name+'.ondabuild.py', stdouterr=name, shouldFail=True)
		self.failures['undefined-override'] = self.ondabuild(buildfile='valid.ondabuild.py', stdouterr='undefined-override',
			args=['not_defined=x'], shouldFail=True)

	def validate(self):
		self.assertThat('failure.startswith(expected)', failure=self.failures['undefined-property'],
			expected='ONDABUILD FAILED: Property "UNDEFINED_PROPERTY" is not defined')
		self.assertGrep('undefined-property.out', expr=r'undefined-property.ondabuild.py" \+9')

		self.assertThat('failure.startswith(expected)', failure=self.failures['unknown-option'],
			expected='ONDABUILD FAILED: Cannot specify value for option that has not been defined "javac.noSuchOption"')

		self.assertThat('failure.startswith(expected)', failure=self.failures['missing-dependency'],
			expected='ONDABUILD FAILED: 1 error(s) (aborted with 1 targets outstanding)')
		self.assertGrep('missing-dependency.out', expr=r'FAILED during dependency resolution: <WriteText> \$\{OUTPUT_DIR\}/x.txt : Missing dependency: .*does-not-exist.txt')

		self.assertThat('failure.startswith(expected)', failure=self.failures['duplicate-target'],
			expected='ONDABUILD FAILED: Duplicate target name "<WriteText> ${OUTPUT_DIR}/x.txt"')

		self.assertThat('failure.startswith(expected)', failure=self.failures['bad-target-chars'],
			expected='ONDABUILD FAILED: FAILED to prepare target <WriteText> ${OUTPUT_DIR}/invalid*chars.txt: Invalid character(s) "*" found in target name')

		self.assertThat('failure.startswith(expected)', failure=self.failures['undefined-override'],
			expected='ONDABUILD FAILED: Cannot specify value for undefined build property/properties: NOT_DEFINED')

		for name in self.failures:
			self.assertGrep(name+'.out', expr='ONDABUILD SUCCEEDED', contains=False)
