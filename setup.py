from setuptools import setup, find_packages

setup(
    name="exprlang",
    version="0.1.0",
    description="exprlang: a small expression-oriented scripting language front end",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    author="exprlang Project",
    python_requires=">=3.9",
    packages=find_packages(),
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "exprlang=exprlang.cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Topic :: Software Development :: Interpreters",
    ],
)
