__pysys_title__   = r""" Target selection - tags, exclusions, regexes, dry runs and console formats """
#                        ================================================================================

__pysys_purpose__ = r""" Selects targets by tag, exclusion and regex. Targets in the "docs" tag write
	into a subdirectory of OUTPUT_DIR that does not exist until they run. The notes target has its
	"docs" tag cleared, so it is only selected by a full build.
	"""

__pysys_groups__  = "framework"

import pysys
from pysys.constants import *
from ondabuildtest.ondabuild_basetest import OndabuildBaseTest

class PySysTest(OndabuildBaseTest):
	def execute(self):
		self.ondabuild(stdouterr='1-dry-run', args=['-n'])
		self.assertPathExists('build-output/app.txt', exists=False)

		self.ondabuild(stdouterr='2-tag', args=['docs'])
		self.assertPathExists('build-output/docs/readme.txt')
		self.assertPathExists('build-output/docs/licence.txt')
		self.assertPathExists('build-output/app.txt', exists=False)
		self.assertPathExists('build-output/notes.txt', exists=False)

		self.ondabuild(stdouterr='3-exclude', args=['-x', 'docs'])
		self.assertPathExists('build-output/app.txt')
		self.assertPathExists('build-output/notes.txt')
		self.assertPathExists('build-output/optional.txt', exists=False)

		self.ondabuild(stdouterr='4-regex', args=['.*/optional.*'])
		self.assertPathExists('build-output/optional.txt')

		self.ambiguous = self.ondabuild(stdouterr='5-ambiguous-regex', args=['.*docs/.*'], shouldFail=True)
		self.unknown = self.ondabuild(stdouterr='6-unknown', args=['nosuchtarget'], shouldFail=True)
		self.ondabuild(stdouterr='7-make-format', args=['-F', 'make', 'broken.txt'], shouldFail=True)
		self.ondabuild(stdouterr='8-list', args=['--targets', '-x', 'app'])

	def validate(self):
		self.assertGrep('1-dry-run.out', expr=r'Building <WriteText> \$\{OUTPUT_DIR\}/app.txt')
		self.assertGrep('1-dry-run.out', expr=r'optional.txt', contains=False)

		self.assertGrep('2-tag.out', expr=r'ONDABUILD SUCCEEDED: 2 built')
		self.assertGrep('3-exclude.out', expr=r'ONDABUILD SUCCEEDED: 2 built')
		self.assertGrep('4-regex.out', expr=r'ONDABUILD SUCCEEDED: 1 built')

		self.assertThat('ambiguous == expected', ambiguous=self.ambiguous,
			expected='ONDABUILD FAILED: Target regex must uniquely identify a single target: .*docs/.* (use tags to specify multiple related targets)')
		self.assertThat('unknown == expected', unknown=self.unknown,
			expected='ONDABUILD FAILED: Unknown target name, target regex or tag name: nosuchtarget')

		self.assertGrep('7-make-format.out', expr=r'test.ondabuild.py:13: error: Target FAILED: <WriteText> \$\{OUTPUT_DIR\}/broken.txt : No text was provided')

		self.assertGrep('8-list.out', expr=r'^3 target\(s\) included: $')
		self.assertGrep('8-list.out', expr=r'^3 target\(s\) excluded \(unless required as dependencies\): $')
		self.assertGrep('8-list.out', expr=r'^   <WriteText> +\$\{OUTPUT_DIR\}/app.txt$')
