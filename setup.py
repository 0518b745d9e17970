import setuptools


with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name="nlopt",
    version="0.1.0",
    description="Tools for analyzing and transforming gate-level netlists.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    include_package_data=True,
    packages=["nlopt", "nlopt.parsing", "nlopt.tests"],
    package_data={"nlopt.parsing": ["*.lark"], "nlopt": ["netlists/*.v"]},
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=["lark", "networkx",],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["nl-opt = nlopt.cli:main"]},
)
