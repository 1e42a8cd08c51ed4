import os
import setuptools

# scrape dependencies from the requirements.txt file
requirements = os.path.join(os.path.dirname(os.path.abspath(__file__)),'requirements.txt')
with open(requirements,'r') as stream:
    dependencies = [requirement.strip('\n') for requirement in stream.readlines() if requirement.strip()]

setuptools.setup(
    name="blackfly",
    version="0.1dev1",
    description="exposure, gain, framerate and trigger control and single image capture for FLIR Blackfly cameras",
    packages=setuptools.find_packages(exclude=['tests', 'tests.*']),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires='>=3.6',
    install_requires=dependencies,
    extras_require={'test': ['pytest']},
    include_package_data=True,
    package_data={"":["*.yaml"]},
    entry_points={'console_scripts': ['blackfly=blackfly.cli:main']},
)
