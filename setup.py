from setuptools import setup, find_packages

setup(
    name="tagdeploy",
    version="0.1.0",
    packages=find_packages(exclude=["tagdeploy.tests"]),
    py_modules=["cli"],
    install_requires=[
        "boto3",
        "botocore",
        "GitPython",
    ],
    extras_require={
        "test": [
            "pytest",
            "moto[awslambda]",
        ],
    },
    entry_points={
        'console_scripts': [
            'tagdeploy=cli:main',
        ],
    },
    description="Deploy a bundle to AWS Lambda, using git tags as the deployment ledger",
    python_requires='>=3.11',
)
