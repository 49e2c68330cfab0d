from setuptools import setup

setup(
    name="gzipinspect",
    version="20261018",
    py_modules=["gzipinspect"],
    description="Inspect gzip header and trailer fields without decompressing",
    python_requires=">=3.6",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Operating System :: OS Independent",
        "Environment :: Console",
        "Programming Language :: Python :: 3",
        "Topic :: System :: Archiving :: Compression"
    ]
)
