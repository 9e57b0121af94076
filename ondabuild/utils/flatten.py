# flatten - turn arbitrarily nested build file arguments into flat lists
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
Helpers for arguments that can be a single item or an arbitrarily nested list of items,
such as the dependencies of a target or the ``javac.options`` option.
"""

import types

_NESTED_TYPES = (list, tuple, set, types.GeneratorType)

def _flattened(value):
	if isinstance(value, _NESTED_TYPES):
		for item in value:
			yield from _flattened(item)
	# zero-arg lambdas are called, but anything with resolve() (such as a PathSet) is an item
	elif callable(value) and not isinstance(value, type) and not hasattr(value, 'resolve'):
		yield from _flattened(value())
	elif value:
		yield value

def flatten(input) -> list:
	"""Returns a flat list of the items in the input, which may contain lists, tuples,
	sets, generators and zero-arg callables nested to any depth.

	Empty strings and None are dropped.

	>>> flatten('src/main/java/')
	['src/main/java/']
	>>> flatten(['a.jar', ['b.jar', ['c.jar']]])
	['a.jar', 'b.jar', 'c.jar']
	>>> flatten(('a', ('b', None, '')))
	['a', 'b']
	>>> flatten(x * 2 for x in [1, 2])
	[2, 4]
	>>> flatten(['a', lambda: 'b'])
	['a', 'b']
	>>> flatten(None)
	[]
	"""
	return list(_flattened(input))

def getStringList(value) -> list:
	""" Returns a list of strings from a string, a list (or tuple) of strings, or None.

	A list containing just one list is unwrapped.

	>>> getStringList('-Xlint')
	['-Xlint']
	>>> getStringList(('-Xlint', '-nowarn'))
	['-Xlint', '-nowarn']
	>>> getStringList([['-Xlint', '-nowarn']])
	['-Xlint', '-nowarn']
	>>> getStringList(None)
	[]
	>>> getStringList(5)
	Traceback (most recent call last):
	...
	ValueError: The specified value must be a list of strings: "5"
	"""
	if value is None: return []
	if isinstance(value, str): return [value]
	if isinstance(value, (list, tuple)):
		if len(value) == 1 and isinstance(value[0], list): return value[0]
		return list(value)
	raise ValueError('The specified value must be a list of strings: "%s"'%(value,))
