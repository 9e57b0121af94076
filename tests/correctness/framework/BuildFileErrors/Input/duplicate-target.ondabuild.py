from ondabuild.propertysupport import *
from ondabuild.buildcommon import *
from ondabuild.pathsets import *

WriteText = include('../../writetext.ondabuild.py')['WriteText']

defineOutputDirProperty('OUTPUT_DIR', None)

WriteText('${OUTPUT_DIR}/x.txt', 'x')
WriteText('${OUTPUT_DIR}/x.txt', 'y')
