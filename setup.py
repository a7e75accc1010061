from setuptools import setup, find_packages

with open('README.md', 'r', encoding='utf-8') as f:
    long_description = f.read()

setup(
    name='colmap-loader',
    version='0.2.0',
    author='SperidLabs',
    author_email='contact@speridlabs.com',
    description='Decoder and loader for COLMAP binary sparse reconstructions',
    long_description=long_description,
    long_description_content_type='text/markdown',
    url='https://github.com/speridlabs/colmap-loader',
    packages=find_packages(exclude=['tests', 'tests.*']),
    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.9',
    install_requires=[
        'numpy>=1.20.0',
        'httpx>=0.23.0',
    ],
    extras_require={
        'dev': [
            'pytest>=6.0',
        ]
    },
    entry_points={
        'console_scripts': [
            'colmap-loader=colmap_loader.__main__:main',
        ],
    },
)
