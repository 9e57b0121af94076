from ondabuild.propertysupport import *
from ondabuild.buildcommon import *
from ondabuild.pathsets import *

from ondabuild.targets.java import Jar

defineOutputDirProperty('OUTPUT_DIR', None)
defineStringProperty('TITLE', 'title')

setGlobalOption('jar.manifest.defaults', {'Built-By':'ondabuild', 'Implementation-Title':'default title'})

Jar('${OUTPUT_DIR}/manifest.jar', compile=None, classpath=['lib/a.jar', 'lib/b.jar'], manifest={
	' Implementation-Title ':' My ${TITLE} ',
	'Main-Class':'uk.blankaspect.test.App',
	'X-Long-Header':'value '+'x'*150+'_',
}).option('jar.manifest.classpathAppend', ['extra/c.jar'])

Jar('${OUTPUT_DIR}/plain.zip', compile=None, classpath=[], manifest=None, package=['resources/data.txt'])
