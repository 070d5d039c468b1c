import os

from setuptools import setup, find_packages

with open(os.path.join(os.path.dirname(__file__), "readme.md"), "r") as fh:
    long_description = fh.read()

setup(
    name='doorctl',
    version='1.0.0',
    license='MIT',
    description='Passwordless door access control for a bookable studio.',
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=("tests", "tests.*")),
    python_requires='>=3.10',
    install_requires=[
        'aiohttp',
        'aiohttp-cors',
        'uvloop',
        'tortoise-orm>=1.0',
        'marshmallow>=3,<4',
        'marshmallow-jsonschema',
        'shapely',
        'python-jose',
        'pynacl',
        'sentry-sdk',
        'webauthn>=2,<3',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-aiohttp',
            'faker',
        ],
    },
    entry_points={
        'console_scripts': ['doorctl=doorctl.cli:run'],
    },
)
