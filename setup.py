from setuptools import find_packages, setup


setup(
    version="0.1.0",
    name="argopkg",
    description="Source-based package manager with reversible installs",
    author="Argo Developers",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    entry_points={
        "console_scripts": [
            "argo = argopkg.app:main",
        ]
    },
    python_requires=">=3.9",
    install_requires=[
        "cleo~=2.1",
        "requests~=2.31",
        "tomli>=1.2",
    ],
    extras_require={
        "test": [
            "pytest>=7",
            "types-requests~=2.31.0.2",
        ]
    },
)
