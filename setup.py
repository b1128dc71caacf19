from setuptools import setup, find_packages

with open('README.md', 'r') as readme:
    long_description = readme.read()

setup(
    name='bscurve', 
    version='1.0.0', 
    description='Evaluation, refinement, subdivision and Bezier decomposition of B-spline curves.', 
    long_description=long_description, 
    long_description_content_type='text/markdown', 
    packages=find_packages(include=['bscurve', 'bscurve.*']), 
    python_requires='>=3.9', 
    install_requires=['numpy', 'numba'], 
    extras_require={'test': ['pytest', 'scipy']}, 
    classifiers=['Programming Language :: Python :: 3', 
                 'Operating System :: OS Independent'], 
    
)
