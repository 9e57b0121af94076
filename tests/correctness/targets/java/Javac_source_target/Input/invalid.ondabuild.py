from ondabuild.propertysupport import *
from ondabuild.buildcommon import *
from ondabuild.pathsets import *

from ondabuild.targets.java import Javac

defineOutputDirProperty('OUTPUT_DIR', None)

Javac('${OUTPUT_DIR}/invalid/', FindPaths('src/', includes='**/*.java'), []).option('javac.source', 'abc')
