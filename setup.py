from setuptools import find_packages, setup

__title__ = "requests_openid"
__description__ = "A stateless OpenID 1.1 and 2.0 relying party library for Python, with requests integration."
__version__ = "0.1.0"
__author__ = "requests_openid contributors"
__license__ = "Apache 2.0"
__copyright__ = "Copyright 2026 requests_openid contributors"

with open("README.rst", "rt") as finput:
    readme = finput.read()

with open("requirements.txt", "rt") as finput:
    requires = [line.strip() for line in finput.readlines() if line.strip()]

setup(
    name=__title__,
    version=__version__,
    description=__description__,
    long_description=readme,
    long_description_content_type="text/x-rst",
    author=__author__,
    packages=find_packages(exclude=("tests", "tests.*")),
    package_data={"": ["LICENSE", "requirements.txt"]},
    package_dir={"requests_openid": "requests_openid"},
    include_package_data=True,
    python_requires=">=3.8",
    install_requires=requires,
    extras_require={"tests": ["pytest", "requests-mock"]},
    license=__license__,
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: Implementation :: CPython",
        "Programming Language :: Python :: Implementation :: PyPy",
        "Topic :: System :: Systems Administration :: Authentication/Directory",
    ],
)
