from setuptools import find_packages, setup

setup(
    name="iterperm",
    version="0.1.0",
    description="Iterative enumeration of distinct multiset permutations",
    packages=find_packages(include=["iterperm", "iterperm.*"]),
    python_requires=">=3.11",
    install_requires=["numpy"],
    extras_require={"test": ["pytest"]},
)
