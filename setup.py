from setuptools import setup, find_packages

setup(
    name="gitgenie",
    version="1.0.0",
    packages=find_packages(include=["gitgenie", "gitgenie.*"]),
    install_requires=[
        "g4f",
        "rich",
        "keyring",
        "cryptography",
        "python-dotenv",
    ],
    extras_require={
        "test": [
            "pytest",
            "GitPython",
        ],
    },
    entry_points={
        'console_scripts': [
            'gg=gitgenie.cli:main_cli',
        ],
    },
    author="",
    author_email="",
    description="AI-Powered Git commit, branch and push workflow",
    long_description=open("README.md", encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    url="https://gitgenie.vercel.app/",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Version Control :: Git",
    ],
    python_requires=">=3.8",
)
