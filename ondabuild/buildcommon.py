# ondabuild - property-driven Python build tool for Java projects
#
# This module holds definitions that are used throughout the build system, and
# typically all names from this module will be imported by build files.
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

"""
Contains standard functionality for use in build files such as `ondabuild.buildcommon.include`,
`ondabuild.buildcommon.joinPath` and useful constants such as `ondabuild.buildcommon.IS_WINDOWS`.
"""

import os
import platform

import ondabuild.utils.fileutils
from ondabuild.utils.flatten import flatten
# do NOT define a 'log' variable here or targets will use it by mistake

def __getOndabuildVersion():
	with open(os.path.join(os.path.dirname(os.path.abspath(__file__)), "ONDABUILD_VERSION")) as f:
		return f.read().strip()
ONDABUILD_VERSION: str = __getOndabuildVersion()
"""The current ondabuild version."""

IS_WINDOWS: bool = platform.system()=='Windows'
""" A boolean that specifies whether this is Windows or some other operating system. """

def joinPath(*segments: str) -> str:
	"""
	Joins an ordered sequence of path segments into a single path using the
	separator of the host operating system.

	Any forward slashes within a segment are converted to the host separator too,
	so segments may themselves be multi-element paths. No other normalization is
	performed: the path is not made absolute, and no separators are added to or
	removed from the start or end.

	>>> joinPath('..', 'common', 'src', 'main', 'java') == os.sep.join(['..', 'common', 'src', 'main', 'java'])
	True
	>>> joinPath('../common', 'src/main/java') == joinPath('..', 'common', 'src', 'main', 'java')
	True
	>>> joinPath('onda.jar')
	'onda.jar'
	>>> joinPath()
	''
	>>> joinPath('${OUTPUT_DIR}', 'bin').split(os.sep)
	['${OUTPUT_DIR}', 'bin']
	>>> joinPath('build', 3)
	Traceback (most recent call last):
	...
	TypeError: Path segments must be strings: 3
	"""
	for s in segments:
		if not isinstance(s, str): raise TypeError('Path segments must be strings: %r'%(s,))
	return os.sep.join(s.replace('/', os.sep) for s in segments)

def include(file):
	""" Loads the targets and properties in the specified ``XXX.ondabuild.py`` file.

	Targets should only be defined in files included using this method,
	not using python import statements.

	@param file: a path relative to the directory containing the including file.
	@return: the namespace the included file was executed in
	"""
	from ondabuild.buildcontext import getBuildInitializationContext, execBuildFile
	from ondabuild.utils.buildfilelocation import BuildFileLocation
	from ondabuild.utils.buildexceptions import BuildException

	init = getBuildInitializationContext()
	file = init.expandPropertyValues(file)
	if not file.endswith('.ondabuild.py'):
		raise BuildException('Included build files must be named XXX.ondabuild.py: %s'%file)
	return execBuildFile(init.getFullPath(file, os.path.dirname(BuildFileLocation._currentBuildFile[-1])))

isDirPath = ondabuild.utils.fileutils.isDirPath
"""Returns true if the path is a directory (ends with a slash, ``/`` or ``\\\\``). """

normpath = ondabuild.utils.fileutils.normPath
"""Returns a normalized path with any trailing slash preserved (as os.sep). """

containsFiles = ondabuild.utils.fileutils.containsFiles
"""Returns true if a directory exists and has at least one file under it, optionally with a given suffix. """
