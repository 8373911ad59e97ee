"""
python -m build
twine upload dist/*
"""

from setuptools import setup, find_packages


def sacrud_setup():
    with open("requirements.txt", "rt") as fp:
        install_requires = fp.read().strip().split("\n")

    version = "1.0.0"

    setup(
        name="sacrud",
        packages=find_packages(exclude=["tests", "tests.*"]),
        package_data={"sacrud": ["templates/mail/*.html"]},
        include_package_data=True,
        version=version,
        license="MIT",
        description="sacrud : SqlAlchemy CRUD resource actions",
        long_description=open("README.rst").read(),
        keywords=["SqlAlchemy", "Flask", "REST", "CRUD", "cache", "pydantic"],
        python_requires=">=3.8, <4",
        install_requires=install_requires,
        classifiers=[
            "Development Status :: 3 - Alpha",
            "Intended Audience :: Developers",
            "Framework :: Flask",
            "Topic :: Software Development :: Libraries",
            "Environment :: Web Environment",
            "Programming Language :: Python :: 3.12",
            "Programming Language :: Python :: 3.11",
            "Programming Language :: Python :: 3.10",
            "Programming Language :: Python :: 3.9",
        ],
        extras_require={"test": ["pytest>=7"]},
    )


sacrud_setup()  # pragma: no cover
