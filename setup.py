from setuptools import setup, find_packages


setup(
    name='torch_trisolve',
    version='0.1.0',
    packages=find_packages(include=['torch_trisolve', 'torch_trisolve.*']),
    install_requires=[
        'torch>=1.13.0',
        'numpy'
    ],
    extras_require={
        'test':['pytest','numpy','scipy'],
        'scipy':['scipy']
    }
)
