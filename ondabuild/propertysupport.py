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

"""
Functions for use in build files to define and use properties and options.

.. rubric:: Build properties

Properties are named, immutable values defined in build files (or read from a ``.properties`` file)
and used throughout the build with ``${PROP_NAME}`` syntax. Every property must be defined exactly once,
and the function used to define it indicates its type:

.. autosummary::
	defineStringProperty
	definePathProperty
	defineOutputDirProperty
	defineEnumerationProperty
	defineBooleanProperty
	definePropertiesFromFile

Properties can be overridden on the command line using ``PROPNAME=value``, or from the environment
once `enableEnvironmentPropertyOverrides` has been called. To see the values for the current build, run::

	python -m ondabuild --properties

.. rubric:: Target options

Options customize the behaviour of targets, either for the whole build (`setGlobalOption`) or for
one target (`ondabuild.basetarget.BaseTarget.option`). For example ``javac.source`` sets the Java
language level used by all Java targets. To see the values for the current build, run::

	python -m ondabuild --options
"""

import os
import typing
import logging

__log = logging.getLogger('propertysupport') # not 'log', as build files import * from here

from ondabuild.buildcontext import BuildInitializationContext
from ondabuild.buildcommon import *
from ondabuild.utils.buildexceptions import BuildException
from ondabuild.utils.fileutils import parsePropertiesFile
from ondabuild.utils.buildfilelocation import BuildFileLocation, formatFileLocation

def _init():
	return BuildInitializationContext.getBuildInitializationContext()

def _define(name, default, coerce):
	# build files are also imported by doctests, where there is nothing to define
	init = _init()
	if init: init.defineProperty(name, default, coerceToValidValue=lambda value: coerce(init.expandPropertyValues(value)))

def defineStringProperty(name, default):
	""" Define a string property which can be used in ${...} substitution.

	Use `definePathProperty` instead for file system paths.

	@param name: The property name

	@param default: The default value of the property (can contain other ${...} variables).
	If set to None, the property must be set on the command line each time
	"""
	_define(name, default, lambda value: value)

def definePathProperty(name, default, mustExist=False):
	""" Define a property holding an absolute, normalized path, with no trailing slash.

	For paths which are output directories of this build use `defineOutputDirProperty`.

	@param name: The name of the property

	@param default: The default path (can contain other ${...} variables). A relative path is
	resolved relative to the directory of the build file that defines it.
	If set to None, the property must be set on the command line each time

	@param mustExist: raise a BuildException if the path does not exist
	"""
	def toPath(value):
		# relative to the defining file, so the property means the same thing wherever it is used
		if not os.path.isabs(value): value = os.path.join(BuildFileLocation(raiseOnError=True).buildDir, value)
		path = normpath(value).rstrip('/\\')
		if mustExist and not os.path.exists(path):
			raise BuildException('Invalid path property value for "%s" - path "%s" does not exist' % (name, path))
		return path
	_define(name, default, toPath)

def defineOutputDirProperty(name, default):
	""" Define a path property that is also registered as an output directory, so it
	is created at the start of the build and deleted by a clean.
	"""
	definePathProperty(name, default)
	registerOutputDirProperties(name)

def registerOutputDirProperties(*propertyNames):
	""" Registers the specified path properties as output directories of this build.
	"""
	init = _init()
	if not init: return
	for path in map(init.getPropertyValue, propertyNames):
		if not os.path.isabs(path): raise BuildException('Only absolute path properties can be used as output dirs: "%s"'%path)
		init.registerOutputDir(normpath(path))

def defineEnumerationProperty(name, default, enumValues):
	""" Defines a property that must take one of the specified values (matched case-insensitively).

	@param name: The name of the property

	@param default: The default value of the property (can contain other ${...} variables)

	@param enumValues: A list of valid values for this property
	"""
	def toEnumValue(value):
		matches = [e for e in enumValues if e.lower() == value.lower()]
		if not matches:
			raise BuildException('Invalid property value for "%s" - value "%s" is not one of the allowed enumeration values: %s' % (name, value, enumValues))
		return matches[0]
	_define(name, default, toEnumValue)

_BOOLEAN_VALUES = {'true':True, 'false':False, '':False}

def defineBooleanProperty(name, default=False):
	""" Defines a boolean property that will have a True or False value.

	@param name: The property name

	@param default: The default value (default = False)
	"""
	def toBool(value):
		try:
			return _BOOLEAN_VALUES[value.lower()]
		except KeyError:
			raise BuildException('Invalid property value for "%s" - must be true or false' % (name))
	init = _init()
	# the default may be a real bool rather than a string
	if init: init.defineProperty(name, default, coerceToValidValue=lambda value: toBool(init.expandPropertyValues(str(value))))

def definePropertiesFromFile(propertiesFile, prefix=None, excludeLines=None):
	"""
	Defines a string property for each ``KEY=value`` line of a .properties file.

	@param propertiesFile: the file to read, relative to the build file (can include ${...} variables)

	@param prefix: added to the start of every property name from this file

	@param excludeLines: a string or list of strings; keys containing any of these are ignored
	"""
	__log.info('Defining properties from file: %s', propertiesFile)
	context = _init()
	propertiesFile = context.getFullPath(propertiesFile, BuildFileLocation(raiseOnError=True).buildDir)
	try:
		f = open(propertiesFile, 'r', encoding='utf-8')
	except Exception:
		raise BuildException('Failed to open properties file "%s"'%(propertiesFile), causedBy=True)
	with f:
		for key, value, lineNo in parsePropertiesFile(f, excludeLines=excludeLines):
			try:
				context.defineProperty((prefix or '')+key, context.expandPropertyValues(value), debug=True)
			except BuildException:
				raise BuildException('Error processing properties file %s'%formatFileLocation(propertiesFile, lineNo), causedBy=True)

def getPropertyValue(propertyName) -> object:
	""" Return the current value of the given property while build files are being loaded.

	Where possible, defer property resolution to the build phase instead.
	"""
	context = _init()
	assert context, 'getPropertyValue can only be used while build files are loaded'
	return context.getPropertyValue(propertyName)

def expandListProperty(propertyName) -> typing.List[str]:
	""" Returns the items of a list property while build files are being loaded.

	@param propertyName: must end with [] e.g. 'EXTRA_JARS[]'
	"""
	assert not propertyName.startswith('$')
	context = _init()
	assert context, 'expandListProperty can only be used while build files are loaded'
	return context.expandListPropertyValue(propertyName)

def enableEnvironmentPropertyOverrides(prefix):
	"""
	Allows properties defined after this call to be overridden by environment
	variables named prefix+PROPERTY_NAME.

	Command line values take precedence over the environment, which takes precedence
	over defaults.

	@param prefix: a mandatory, build-specific prefix such as ``ONDA_``, so that
	common environment variables such as JAVA_HOME cannot accidentally override
	properties of the same name
	"""
	init = _init()
	if init: init.enableEnvironmentPropertyOverrides(prefix)

def defineOption(name, default):
	""" Define an option with a default, which can be overridden globally using
	`setGlobalOption` or on individual targets. Used when implementing targets.

	@param name: The option name, usually lowerCamelCase with a prefix for the group of
	targets it applies to, e.g. ``javac.source``.

	@param default: The default value of the option.
	"""
	BuildInitializationContext._defineOption(name, default)

def setGlobalOption(key, value):
	"""
	Globally override the default for an option.
	"""
	init = _init()
	if init: init.setGlobalOption(key, value)
