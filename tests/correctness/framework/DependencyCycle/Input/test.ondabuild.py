from ondabuild.propertysupport import *
from ondabuild.buildcommon import *
from ondabuild.pathsets import *

WriteText = include('../../writetext.ondabuild.py')['WriteText']

defineOutputDirProperty('OUTPUT_DIR', None)

WriteText('${OUTPUT_DIR}/a.txt', 'a', ['${OUTPUT_DIR}/b.txt'])
WriteText('${OUTPUT_DIR}/b.txt', 'b', ['${OUTPUT_DIR}/a.txt'])
WriteText('${OUTPUT_DIR}/c.txt', 'c')
