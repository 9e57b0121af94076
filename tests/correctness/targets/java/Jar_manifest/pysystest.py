__pysys_title__   = r""" Jar - manifest generation, line wrapping and plain zips """
#                        ================================================================================

__pysys_purpose__ = r""" Checks the order, wrapping and values of generated manifest headers, including
	the Class-Path from the classpath destinations and jar.manifest.classpathAppend, and that a
	jar with no manifest is a plain zip.
	"""

__pysys_groups__  = "java"

import zipfile

import pysys
from pysys.constants import *
from ondabuildtest.ondabuild_basetest import OndabuildBaseTest

class PySysTest(OndabuildBaseTest):
	def execute(self):
		self.ondabuild(stdouterr='manifest')

		with zipfile.ZipFile(self.output+'/build-output/manifest.jar') as jar:
			self.manifestEntries = jar.namelist()
			manifest = jar.read('META-INF/MANIFEST.MF')
		self.manifestLines = manifest.split(b'\r\n')
		# unfold the continuation lines
		self.write_text('MANIFEST-unfolded.MF', manifest.replace(b'\r\n ', b'').decode('utf-8').replace('\r\n', '\n'))

		with zipfile.ZipFile(self.output+'/build-output/plain.zip') as zf:
			self.plainEntries = zf.namelist()

	def validate(self):
		self.assertThat('entries == expected', entries=self.manifestEntries, expected=['META-INF/', 'META-INF/MANIFEST.MF'])
		self.assertThat('maxLineLength <= 72', maxLineLength=max(len(l) for l in self.manifestLines))
		self.assertThat('lastLines == expected', lastLines=self.manifestLines[-2:], expected=[b'', b''])
		self.assertThat('any(l.startswith(b" x") for l in lines)', lines=self.manifestLines)

		self.assertOrderedGrep('MANIFEST-unfolded.MF', exprList=[
			'^Manifest-Version: 1.0$',
			'^Built-By: ondabuild$',
			'^Class-Path: a.jar b.jar extra/c.jar$',
			'^Implementation-Title: My title$',
			'^Main-Class: uk.blankaspect.test.App$',
			'^X-Long-Header: value x{150}_$',
		])
		self.assertLineCount('MANIFEST-unfolded.MF', expr='.', condition='==6')

		self.assertThat('plainEntries == expected', plainEntries=self.plainEntries, expected=['data.txt'])
