from ondabuild.propertysupport import *
from ondabuild.buildcommon import *
from ondabuild.pathsets import *

WriteText = include('../../writetext.ondabuild.py')['WriteText']

defineOutputDirProperty('OUTPUT_DIR', None)

setGlobalOption('javac.noSuchOption', True)
