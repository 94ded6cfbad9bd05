import os
import sys
from setuptools import setup

try:
    src_dir = os.path.realpath(os.path.join(__file__, '..'))
    sys.path.append(src_dir)
    import logknife

    version = logknife.__version__
    description = logknife.__doc__.strip()
except ImportError:
    logknife = None
    version = '0.0.0'
    description = 'Follow a growing log file, filter its lines and ' \
                  'colorize the result.'

test_requires = [
    'pytest > 3.1',
]

setup(
    name='logknife',
    description=description,
    version=version,
    license='GPL 3.0',
    platforms='any',
    python_requires='>=3.7',
    packages=[
        'logknife',
    ],
    entry_points={
        'console_scripts': [
            'logknife = logknife.main:main',
        ]
    },
    install_requires=[
        'PyYAML >= 5.1',
    ],
    extras_require={
        'test': test_requires
    },
)
