from setuptools import setup, find_packages

setup(
    name='rune-runner',
    version='0.1.0',
    py_modules=['rune', 'compiler'],
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=[
        'lark',
        'pydantic>=2',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'rune = rune:main',
        ],
    },
)
