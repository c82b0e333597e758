import setuptools

VERSION = '0.1.0'

setup_params = dict(
    name='cachedapi',
    version=VERSION,
    author='Kenneth VanderLinde',
    author_email='kwvanderlinde@gmail.com',
    url='https://github.com/kwvanderlinde/cachedapi',
    keywords='requests cache deduplication http client',
    packages=setuptools.find_packages(exclude=['tests', 'tests.*']),
    package_dir={'cachedapi': 'cachedapi'},
    include_package_data=True,
    description='Request deduplication, fetch policies and response caching for the requests library',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    install_requires=['requests~=2.31'],
    extras_require={
        'dev': [
            'mockito~=1.4',
            'pytest~=8.0',
            'pytest-cov~=5.0',
            'ddt~=1.7',
        ],
    },
    entry_points={},
    python_requires='>=3.8',
    classifiers=[
        'Development Status :: 2 - Pre-Alpha',
        'Environment :: Web Environment',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: BSD License',
        'Natural Language :: English',
        'Operating System :: OS Independent',
        'Framework :: AsyncIO',

        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3 :: Only',
    ],
)


if __name__ == '__main__':
    setuptools.setup(**setup_params)
