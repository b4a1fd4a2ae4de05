"""
/setup.py

Cosinor phase-recovery analysis.
"""

import setuptools

with open("requirements.txt", "r", encoding="utf-8") as file:
    requirements = file.read().splitlines()

setuptools.setup(
    name="cosinor-phases",
    version="0.0.1",
    description="Cosinor fitting and naive vs. two-argument arctangent phase recovery",
    package_dir={"": "src"},
    packages=setuptools.find_packages(where="src", exclude=["*.tests", "*.tests.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "cosinor_phases = cosinor.commands:main",
        ]
    },
)
