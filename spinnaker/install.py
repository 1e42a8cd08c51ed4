import os
import sys
import argparse
import subprocess

# working directory
cwd = os.path.dirname(os.path.realpath(__file__))

# line of the GRUB config file which holds the kernel parameters
GRUB_CMDLINE_PREFIX = 'GRUB_CMDLINE_LINUX_DEFAULT='

def collect(directory, suffix):
    """
    Collect the files with the given suffix
    """

    filepaths = list()
    for root, folders, files in os.walk(directory):
        for file in files:
            if file.endswith(suffix):
                filepaths.append(os.path.join(root, file))

    return sorted(filepaths)

def set_memory_limit(lines, memory_limit):
    """
    Set the USB-FS memory limit in the lines of a GRUB config file

    Returns the modified lines. The Spinnaker SDK needs more than the default
    16 MB of USB-FS memory to stream from USB3 cameras.
    """

    lines = list(lines)

    for iline, line in enumerate(lines):
        if not line.startswith(GRUB_CMDLINE_PREFIX):
            continue
        parameters = [
            parameter for parameter in line[len(GRUB_CMDLINE_PREFIX):].strip().strip('"').split()
                if not parameter.startswith('usbcore.usbfs_memory_mb=')
        ]
        parameters.append(f'usbcore.usbfs_memory_mb={memory_limit}')
        lines[iline] = f'{GRUB_CMDLINE_PREFIX}"{" ".join(parameters)}"\n'
        return lines

    raise ValueError('unable to locate the kernel parameters in the GRUB config file')

def main(argv=None):

    parser = argparse.ArgumentParser(description='install the Spinnaker SDK and the PySpin wheel')
    parser.add_argument("--increase-memory-limit",help="increase USB-FS memory limit",action="store_true",default=False)
    parser.add_argument("--memory-limit",help="ubfs memory limit to set",type=int,default=1200)
    parser.add_argument("--default-grub",help="filepath for the grub config file",default='/etc/default/grub')
    args = parser.parse_args(argv)

    # make sure the memory limit is within an acceptable range
    if args.increase_memory_limit:
        if not os.path.exists(args.default_grub):
            raise ValueError('unable to locate the GRUB settings file')
        if not 16 <= args.memory_limit <= 2400:
            raise ValueError('memory limit must be between 16 and 2400 MB')

    # install the libraries
    for library in collect(cwd, '.deb'):
        subprocess.check_call(['sudo','dpkg','-i',library])

    # install the dependencies
    dependencies = os.path.join(cwd,'dependencies.txt')
    if os.path.exists(dependencies):
        with open(dependencies) as stream:
            packages = [line.strip() for line in stream.readlines() if line.strip()]
        subprocess.check_call(['sudo','apt-get','install','-y'] + packages)

    # install the PySpin wheel file
    for wheel in collect(cwd, '.whl'):
        subprocess.check_call([sys.executable,'-m','pip','install',wheel])

    # modify GRUB's config file
    if args.increase_memory_limit:

        with open(args.default_grub,'r') as stream:
            lines = stream.readlines()

        lines = set_memory_limit(lines, args.memory_limit)

        with open(args.default_grub,'w') as stream:
            stream.writelines(lines)

        subprocess.check_call(['sudo','update-grub'])

        print('The computer needs to be rebooted for these changes to take effect.')

    return 0

if __name__ == '__main__':
    sys.exit(main())
