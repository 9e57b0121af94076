# ondabuild - property-driven Python build tool for Java projects
#
# Copyright (c) 2013 - 2017, 2019 Software AG, Darmstadt, Germany and/or its licensors
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.
#

# Onda build file. Compiles the application together with the shared "common" sources
# and packages it as an executable jar. Run with:
#
#    python -m ondabuild

from ondabuild.propertysupport import *
from ondabuild.buildcommon import *
from ondabuild.pathsets import *

from ondabuild.targets.java import Jar

defineStringProperty('PACKAGE_NAME', 'onda')
defineStringProperty('MAIN_CLASS', 'uk.blankaspect.${PACKAGE_NAME}.App')

# the shared sources live in a sibling of this project
COMMON_DIR = joinPath('..', 'common')
definePathProperty('COMMON_SOURCE_DIR', joinPath(COMMON_DIR, 'src', 'main', 'java'))

definePathProperty('SOURCE_DIR', joinPath('src', 'main', 'java'))
definePathProperty('RESOURCES_DIR', joinPath('src', 'main', 'resources'))

JAVA_VERSION = '1.8'
setGlobalOption('javac.source', JAVA_VERSION)
setGlobalOption('javac.target', JAVA_VERSION)

definePathProperty('JAR_DIR', '${OUTPUT_DIR}/bin')
defineStringProperty('JAR_FILENAME', 'onda.jar')

Jar('${JAR_DIR}/${JAR_FILENAME}',
	compile=FindPaths('${SOURCE_DIR}/', includes='**/*.java'),
	classpath=[],
	sourcepath='${COMMON_SOURCE_DIR}',
	manifest={
		'Application-Name':'${PROJECT_NAME}',
		'Main-Class':'${MAIN_CLASS}',
	},
	# resources are optional, and an empty directory is the same as none
	package=FindPaths('${RESOURCES_DIR}/') if containsFiles(getPropertyValue('RESOURCES_DIR')) else None,
).tags('onda')
