__pysys_title__   = r""" Onda descriptor - properties, options and targets can be listed and overridden """
#                        ================================================================================

__pysys_purpose__ = r""" Lists the properties, options and targets of the root.ondabuild.py in the
	repository, checking the defaults and that PACKAGE_NAME can be overridden from the command line.
	"""

__pysys_groups__  = "descriptor"

import os, re

import pysys
from pysys.constants import *
from ondabuildtest.ondabuild_basetest import OndabuildBaseTest

class PySysTest(OndabuildBaseTest):
	def execute(self):
		buildfile = self.project.ONDABUILD_ROOT+'/root.ondabuild.py'
		self.ondabuild(buildfile=buildfile, setOutputDir=False, stdouterr='properties', args=['--properties'])
		self.ondabuild(buildfile=buildfile, setOutputDir=False, stdouterr='properties-override', args=['--properties', 'package_name=other'])
		self.ondabuild(buildfile=buildfile, setOutputDir=False, stdouterr='options', args=['--options'])
		self.ondabuild(buildfile=buildfile, setOutputDir=False, stdouterr='targets', args=['--targets'])

	def validate(self):
		root = os.path.normpath(self.project.ONDABUILD_ROOT)

		self.assertGrep('properties.out', expr=r'^ *PACKAGE_NAME = onda$')
		self.assertGrep('properties.out', expr=r'^ *MAIN_CLASS = uk.blankaspect.onda.App$')
		self.assertGrep('properties.out', expr=r'^ *JAR_FILENAME = onda.jar$')
		self.assertGrep('properties.out', expr='^ *COMMON_SOURCE_DIR = '+re.escape(os.path.join(os.path.dirname(root), 'common', 'src', 'main', 'java'))+'$')
		self.assertGrep('properties.out', expr='^ *SOURCE_DIR = '+re.escape(os.path.join(root, 'src', 'main', 'java'))+'$')
		self.assertGrep('properties.out', expr='^ *OUTPUT_DIR = '+re.escape(os.path.join(root, 'build'))+'$')
		self.assertGrep('properties.out', expr='^ *JAR_DIR = '+re.escape(os.path.join(root, 'build', 'bin'))+'$')
		self.assertGrep('properties.out', expr='^ *PROJECT_NAME = '+re.escape(os.path.basename(root))+'$')

		self.assertGrep('properties-override.out', expr=r'^ *PACKAGE_NAME = other$')
		self.assertGrep('properties-override.out', expr=r'^ *MAIN_CLASS = uk.blankaspect.other.App$')

		self.assertGrep('options.out', expr=r'^ *javac.source = 1.8$')
		self.assertGrep('options.out', expr=r'^ *javac.target = 1.8$')
		self.assertGrep('options.out', expr=r'^ *javac.encoding = UTF-8$')

		self.assertGrep('targets.out', expr=r'^1 target\(s\) included: $')
		self.assertGrep('targets.out', expr=r'^   <Jar> +\$\{JAR_DIR\}/\$\{JAR_FILENAME\}$')
		self.assertGrep('targets.out', expr=r'^   onda +\(1 targets\)$')
