__pysys_title__   = r""" Onda descriptor - a relative OUTPUT_DIR is relative to the project, not the working directory """
#                        ================================================================================

__pysys_purpose__ = r""" Builds, lists and cleans with OUTPUT_DIR=out from a different working directory.
	All the output, including the javac work files, must be under <project>/out.
	"""

__pysys_groups__  = "java, descriptor"

import os, re, shutil

import pysys
from pysys.constants import *
from ondabuildtest.ondabuild_basetest import OndabuildBaseTest

class PySysTest(OndabuildBaseTest):
	def execute(self):
		self.createFakeJDK()
		shutil.copytree(self.input+'/workspace', self.output+'/workspace')
		self.projectDir = os.path.normpath(self.output+'/workspace/onda')
		buildfile = self.projectDir+'/root.ondabuild.py'
		shutil.copy2(self.project.ONDABUILD_ROOT+'/root.ondabuild.py', buildfile)
		elsewhere = self.mkdir(self.output+'/elsewhere')

		self.ondabuild(buildfile=buildfile, setOutputDir=False, stdouterr='build', args=['OUTPUT_DIR=out'], workingDir=elsewhere)
		self.assertPathExists(self.projectDir+'/out/bin/onda.jar')
		self.assertPathExists(self.projectDir+'/out/BUILD_WORK/targets/Jar/_JAR_DIR_._JAR_FILENAME_/javac_args.txt')
		self.assertPathExists(self.projectDir+'/out/BUILD_WORK/javac_logs')
		self.assertPathExists(elsewhere+'/out', exists=False)

		self.ondabuild(buildfile=buildfile, setOutputDir=False, stdouterr='properties', args=['--properties', 'OUTPUT_DIR=out'], workingDir=elsewhere)

		self.ondabuild(buildfile=buildfile, setOutputDir=False, stdouterr='clean', args=['--clean', 'OUTPUT_DIR=out'], workingDir=elsewhere)
		self.assertPathExists(self.projectDir+'/out', exists=False)
		self.assertPathExists(self.projectDir+'/src/main/java')

	def validate(self):
		self.assertGrep('build.out', expr=r'\*\*\* ONDABUILD SUCCEEDED: 1 built')
		self.assertGrep('properties.out', expr='^ *OUTPUT_DIR = '+re.escape(os.path.join(self.projectDir, 'out'))+'$')
		self.assertGrep('properties.out', expr='^ *BUILD_WORK_DIR = '+re.escape(os.path.join(self.projectDir, 'out', 'BUILD_WORK'))+'$')
		self.assertGrep('properties.out', expr='^ *JAR_DIR = '+re.escape(os.path.join(self.projectDir, 'out', 'bin'))+'$')
		self.assertGrep('clean.out', expr=r'Cleaning <Jar> \$\{JAR_DIR\}/\$\{JAR_FILENAME\}')
