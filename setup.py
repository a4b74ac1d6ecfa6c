from setuptools import setup, find_packages

setup(
    name='jdkfetch',
    version='0.1.0',
    description='Resolve JDK version requests and download Eclipse Temurin archives from mirrored sources',
    package_dir={'': 'src'},
    packages=find_packages('src'),
    python_requires='>=3.9',
    install_requires=[
        'requests',
        'urllib3',
        'PyYAML',
        'platformdirs',
        'rich',
        'packaging',
        'tomli',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-mock',
        ],
    },
    entry_points={
        'console_scripts': [
            'jdkfetch=jdkfetch.cli:main',
        ],
    },
)
