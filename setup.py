from setuptools import setup, find_packages

with open("README.md", "r") as fh:
    long_description = fh.read()

setup(
    name="epub-shell",
    version="2026.10.18",
    description="Reader shell for epub rendering engines: history, resume and search wiring",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="GPL-3.0",
    keywords=["epub", "epub3", "reader", "history", "bookmarks"],
    python_requires=">=3.8",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    entry_points={"console_scripts": ["epub-shell = epub_shell.__main__:main"]},
    install_requires=[],
    extras_require={"test": ["pytest"]},
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
        "Operating System :: OS Independent",
    ],
)
