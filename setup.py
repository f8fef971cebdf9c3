from setuptools import find_packages, setup

setup(
    name="assessment-cache",
    version="1.0.0",
    description="Fingerprint-keyed memory + disk result cache for project assessments",
    packages=find_packages(include=["assessment_cache", "assessment_cache.*"]),
    install_requires=[line for line in open("requirements-core.txt").read().splitlines() if line],
    extras_require={
        "test": [line for line in open("requirements-test.txt").read().splitlines() if line],
    },
    python_requires=">=3.10",
)
