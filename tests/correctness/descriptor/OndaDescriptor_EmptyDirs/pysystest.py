__pysys_title__   = r""" Onda descriptor - empty resources and shared source directories are allowed """
#                        ================================================================================

__pysys_purpose__ = r""" The project has an empty src/main/resources directory, and the shared common
	source directory has no .java files. Neither is an error; the jar contains just the
	compiled classes and the manifest.
	"""

__pysys_groups__  = "java, descriptor"

import os, shutil, zipfile

import pysys
from pysys.constants import *
from ondabuildtest.ondabuild_basetest import OndabuildBaseTest

class PySysTest(OndabuildBaseTest):
	def execute(self):
		self.createFakeJDK()
		shutil.copytree(self.input+'/workspace', self.output+'/workspace')
		self.projectDir = self.output+'/workspace/onda'
		self.mkdir(self.projectDir+'/src/main/resources')
		shutil.copy2(self.project.ONDABUILD_ROOT+'/root.ondabuild.py', self.projectDir+'/root.ondabuild.py')

		self.ondabuild(buildfile=self.projectDir+'/root.ondabuild.py', setOutputDir=False, stdouterr='onda')

	def validate(self):
		self.assertGrep('onda.out', expr=r'\*\*\* ONDABUILD SUCCEEDED: 1 built')

		with zipfile.ZipFile(self.projectDir+'/build/bin/onda.jar') as jar:
			entries = jar.namelist()
		self.assertThat('entries == expected', entries=entries,
			expected=['META-INF/', 'META-INF/MANIFEST.MF', 'uk/', 'uk/blankaspect/', 'uk/blankaspect/onda/', 'uk/blankaspect/onda/App.class'])

		# javac is still told about the shared sources
		self.assertGrep(self.projectDir+'/build/BUILD_WORK/targets/Jar/_JAR_DIR_._JAR_FILENAME_/javac_args.txt',
			expr='^".*/workspace/common/src/main/java"$')
