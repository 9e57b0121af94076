from ondabuild.propertysupport import *
from ondabuild.buildcommon import *
from ondabuild.pathsets import *

from ondabuild.targets.java import Jar

defineOutputDirProperty('OUTPUT_DIR', None)

Jar('${OUTPUT_DIR}/test.jar', compile=None, classpath=[], manifest={'Main-Class':'uk.blankaspect.test.App'})
