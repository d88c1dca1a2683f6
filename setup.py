from setuptools import setup, find_packages

setup(
    name="hashrouter",
    version="0.0.1",
    description="Fragment router for Python in the browser",
    author="Hashrouter Team",
    packages=find_packages(include=["hashrouter", "hashrouter.*"]),
    include_package_data=True,
    python_requires=">=3.8",
    install_requires=[
        "pyodide-py",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
