from ondabuild.propertysupport import *
from ondabuild.buildcommon import *
from ondabuild.pathsets import *

from ondabuild.targets.java import Jar

defineOutputDirProperty('OUTPUT_DIR', None)
definePathProperty('COMMON_DIR', None)
defineStringProperty('MAIN_CLASS', 'uk.blankaspect.test.App')

Jar('${OUTPUT_DIR}/app.jar', FindPaths('src/', includes='**/*.java'), [],
	sourcepath='${COMMON_DIR}/src/',
	manifest={'Main-Class':'${MAIN_CLASS}'})
