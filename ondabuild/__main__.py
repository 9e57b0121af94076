#!/usr/bin/env python3
#
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

import sys

if sys.version_info < (3, 6): sys.exit('ondabuild requires at least Python 3.6 - unsupported Python version %s.%s'%sys.version_info[:2])

from ondabuild.internal.main import main
sys.exit(main(sys.argv[1:]))
