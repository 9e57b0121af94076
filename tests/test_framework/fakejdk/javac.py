"""
A stand-in for the javac executable, so the Java targets can be tested without a JDK.

It accepts the subset of javac arguments that ondabuild generates, including an @argsfile.
Instead of compiling, it writes a small .class file for each input (and for each class
imported from the -sourcepath), whose header has the class file version for -target.

An import that cannot be found in the inputs or on the sourcepath gives a
"cannot find symbol" error in javac's format. A line containing FAKEJAVAC_WARNING
gives a warning, which is an error if -Werror is specified.
"""

import os, re, shlex, struct, sys

VALID_RELEASES = ['1.6', '1.7', '1.8']+[str(v) for v in range(9, 22)]

def expandArgs(args):
	result = []
	for a in args:
		if a.startswith('@'):
			with open(a[1:], encoding='utf-8') as f:
				for line in f:
					result.extend(shlex.split(line))
		else:
			result.append(a)
	return result

def majorVersion(release):
	# 1.8 is 52, 11 is 55
	return 44+int(release.split('.')[-1])

def findSource(package, classname, inputs, sourcepath):
	relpath = os.path.join(*(package.split('.')+[classname+'.java']))
	for i in inputs:
		if i.endswith(os.sep+relpath): return i
	for d in sourcepath:
		if os.path.isfile(os.path.join(d, relpath)): return os.path.join(d, relpath)
	return None

def main(args):
	args = expandArgs(args)
	outputDir, release, sourcepath, warningsAsErrors = '.', '1.8', [], False
	inputs = []
	i = 0
	while i < len(args):
		a = args[i]
		if a in ['-d', '-source', '-target', '-encoding', '-cp', '-classpath', '-sourcepath']:
			value = args[i+1]
			i += 2
			if a == '-d':
				outputDir = value
			elif a in ['-source', '-target']:
				if value not in VALID_RELEASES:
					print('error: invalid %s release: %s'%(a[1:], value), file=sys.stderr)
					return 2
				if a == '-target': release = value
			elif a == '-sourcepath':
				sourcepath = value.split(os.pathsep)
			continue
		if a == '-Werror':
			warningsAsErrors = True
		elif a.endswith('.java'):
			inputs.append(os.path.abspath(a))
		i += 1

	errors, warnings, classes = [], [], {}
	pending = list(inputs)
	while pending:
		path = pending.pop(0)
		if path in classes: continue
		package = None
		with open(path, encoding='utf-8') as f:
			lines = f.read().split('\n')
		for lineno, line in enumerate(lines, 1):
			m = re.match(r'\s*package\s+([\w.]+)\s*;', line)
			if m: package = m.group(1)
			m = re.match(r'\s*import\s+([\w.]+)\.(\w+)\s*;', line)
			if m and not m.group(1).startswith(('java.', 'javax.')):
				imported = findSource(m.group(1), m.group(2), inputs, sourcepath)
				if imported:
					pending.append(imported)
				else:
					errors.append(['%s:%d: error: cannot find symbol'%(path, lineno), line, '^',
						'  symbol:   class %s'%m.group(2), '  location: package %s'%m.group(1)])
			if 'FAKEJAVAC_WARNING' in line:
				warnings.append(['%s:%d: warning: [fake] %s'%(path, lineno, line.split('FAKEJAVAC_WARNING', 1)[1].strip())])
		classes[path] = (package.split('.') if package else [])+[os.path.basename(path)[:-len('.java')]]

	if warningsAsErrors and warnings:
		print('error: warnings found and -Werror specified', file=sys.stderr)
	for x in errors+warnings:
		print('\n'.join(x), file=sys.stderr)
	if errors or (warningsAsErrors and warnings):
		count = len(errors)+(1 if warningsAsErrors and warnings else 0)
		print('%d error%s'%(count, '' if count == 1 else 's'), file=sys.stderr)
	if warnings:
		print('%d warning%s'%(len(warnings), '' if len(warnings) == 1 else 's'), file=sys.stderr)
	if errors or (warningsAsErrors and warnings):
		return 1

	for parts in classes.values():
		classfile = os.path.join(outputDir, *parts)+'.class'
		os.makedirs(os.path.dirname(classfile), exist_ok=True)
		with open(classfile, 'wb') as f:
			f.write(struct.pack('>IHH', 0xCAFEBABE, 0, majorVersion(release)))
			f.write(('fake class %s'%'.'.join(parts)).encode('utf-8'))
	return 0

if __name__ == '__main__':
	sys.exit(main(sys.argv[1:]))
