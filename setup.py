from setuptools import setup, find_packages

setup(
    name="hvacsim",
    version="0.1.0",
    description="Building HVAC energy simulation and heat pump selection",
    packages=find_packages(include=["hvacsim", "hvacsim.*"]),
    py_modules=["main"],
    install_requires=[
        "numpy",
        "pandas",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
