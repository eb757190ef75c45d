from setuptools import setup, find_namespace_packages

setup(
    name="beacon-redux",
    version="0.1.0",
    description="Bluetooth LE beacon toggle with a Redux-style state store",
    author="mseibert",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src"),
    py_modules=["main", "config"],
    python_requires=">=3.11",
    install_requires=[
        "Pillow>=10.1.0",
        "PyYAML>=6.0",
        "python-dotenv>=1.0.0",
        "pyobjc-framework-CoreBluetooth>=10.0; sys_platform == 'darwin'",
    ],
    extras_require={
        "test": ["pytest>=8.0.0"],
    },
    entry_points={
        "console_scripts": [
            "beacon-redux=main:main",
        ],
    },
)
