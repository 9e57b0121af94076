from ondabuild.propertysupport import *
from ondabuild.buildcommon import *
from ondabuild.pathsets import *

from ondabuild.targets.java import Jar

defineOutputDirProperty('OUTPUT_DIR', None)

SOURCES = FindPaths('src-warnings/', includes='**/*.java')

Jar('${OUTPUT_DIR}/warn-ok.jar', SOURCES, [], manifest={})
Jar('${OUTPUT_DIR}/warn-fail.jar', SOURCES, [], manifest={}).option('javac.warningsAsErrors', True)
