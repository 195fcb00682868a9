import sys
from os import path

from setuptools import setup, find_namespace_packages


def get_version():
    context = {}
    with open(path.join(path.dirname(path.abspath(__file__)), 'clothoid', 'version.py'), 'r') as file:
        exec(file.read(), context)
    return context['VERSION']


VERSION = get_version()

this_directory = path.abspath(path.dirname(__file__))
with open(path.join(this_directory, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()
packages = find_namespace_packages(include=("clothoid", "clothoid.*"), exclude=("docs", "docs.*", "build.*"))
print("We will install the following packages: ", packages)

assert sys.version_info.major == 3 and sys.version_info.minor >= 6, \
    "python version >= 3.6 is required"

install_requires = [
    "numpy>=1.21.6",
    "scipy",
    "shapely",
]

test_requirement = [
    "pytest",
]

setup(
    name="clothoid-segment",
    version=VERSION,
    description="Euler spiral segments with closed-form evaluation and parameter Jacobians",
    packages=packages,
    install_requires=install_requires,
    extras_require={
        "test": test_requirement,
    },
    include_package_data=True,
    license="Apache 2.0",
    long_description=long_description,
    long_description_content_type='text/markdown',
)
