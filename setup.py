"""Setup script for the globe anchor package."""

from setuptools import setup, find_packages

requires = ["bitstring>=3.1.3,<5", "click>=6.2", "numpy>=1.20"]

__version__ = None
exec(open("src/globeanchor/version.py").read())

setup(
    name="globe-anchor",
    version=__version__,
    author=u"Tamás Nepusz",
    author_email="tamas@collmot.com",
    package_dir={"": "src"},
    packages=find_packages("src"),
    include_package_data=True,
    install_requires=requires,
    extras_require={"test": ["pytest"]},
    python_requires=">=3.9",
    entry_points={"console_scripts": ["globe-anchor = globeanchor.cli:main"]},
)
