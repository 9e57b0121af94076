from ondabuild.propertysupport import *
from ondabuild.buildcommon import *
from ondabuild.pathsets import *

WriteText = include('../../writetext.ondabuild.py')['WriteText']

defineOutputDirProperty('OUTPUT_DIR', None)

WriteText('${OUTPUT_DIR}/docs/readme.txt', 'readme').tags('docs')
WriteText('${OUTPUT_DIR}/docs/licence.txt', 'licence').tags('docs')
WriteText('${OUTPUT_DIR}/app.txt', 'app').tags('app')
WriteText('${OUTPUT_DIR}/optional.txt', 'optional').disableInFullBuild()
WriteText('${OUTPUT_DIR}/broken.txt', None).disableInFullBuild()
WriteText('${OUTPUT_DIR}/notes.txt', 'notes').tags('docs').clearTags()
