__pysys_title__   = r""" Onda descriptor - builds bin/onda.jar with the common sources and manifest """
#                        ================================================================================

__pysys_purpose__ = r""" Runs the real root.ondabuild.py against a sample Onda project with a sibling
	common module, from a working directory that is not the project directory.
	"""

__pysys_groups__  = "java, descriptor"

import os, shutil, struct, zipfile

import pysys
from pysys.constants import *
from ondabuildtest.ondabuild_basetest import OndabuildBaseTest

class PySysTest(OndabuildBaseTest):
	def execute(self):
		self.createFakeJDK()
		shutil.copytree(self.input+'/workspace', self.output+'/workspace')
		self.projectDir = self.output+'/workspace/onda'
		shutil.copy2(self.project.ONDABUILD_ROOT+'/root.ondabuild.py', self.projectDir+'/root.ondabuild.py')

		self.ondabuild(buildfile=self.projectDir+'/root.ondabuild.py', setOutputDir=False, stdouterr='onda')

		# the jar location does not depend on the working directory
		self.ondabuild(buildfile=self.projectDir+'/root.ondabuild.py', setOutputDir=False, stdouterr='onda-elsewhere',
			workingDir=self.mkdir(self.output+'/elsewhere'))

	def validate(self):
		self.assertGrep('onda.out', expr=r'\*\*\* ONDABUILD SUCCEEDED: 1 built')
		self.assertGrep('onda-elsewhere.out', expr=r'Target is already up-to-date: <Jar> \$\{JAR_DIR\}/\$\{JAR_FILENAME\}')

		jarpath = self.projectDir+'/build/bin/onda.jar'
		self.assertPathExists(jarpath)
		self.assertPathExists(self.output+'/elsewhere/build', exists=False)

		with zipfile.ZipFile(jarpath) as jar:
			entries = jar.namelist()
			self.write_text('MANIFEST.MF', jar.read('META-INF/MANIFEST.MF').decode('utf-8').replace('\r\n', '\n'))
			appClass = jar.read('uk/blankaspect/onda/App.class')

		self.assertThat('entries[:2] == expected', entries=entries, expected=['META-INF/', 'META-INF/MANIFEST.MF'])
		self.assertThat('"uk/blankaspect/onda/App.class" in entries', entries=entries)
		# compiled from the common sourcepath because App imports it
		self.assertThat('"uk/blankaspect/common/misc/NameUtils.class" in entries', entries=entries)
		self.assertThat('"uk/blankaspect/common/misc/Unused.class" not in entries', entries=entries)
		self.assertThat('"uk/blankaspect/onda/resources/onda.properties" in entries', entries=entries)

		self.assertOrderedGrep('MANIFEST.MF', exprList=[
			'^Manifest-Version: 1.0$',
			'^Application-Name: onda$',
			'^Main-Class: uk.blankaspect.onda.App$',
		])

		# Java 8 class files
		self.assertThat('classVersion == 52', classVersion=struct.unpack('>IHH', appClass[:8])[2])

		self.assertOrderedGrep(self.projectDir+'/build/BUILD_WORK/targets/Jar/_JAR_DIR_._JAR_FILENAME_/javac_args.txt', exprList=[
			'^"-source"$', '^"1.8"$',
			'^"-target"$', '^"1.8"$',
			'^"-sourcepath"$', '^".*/workspace/common/src/main/java"$',
			'^".*/App.java"$',
		])
