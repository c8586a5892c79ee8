from setuptools import setup, find_packages

package_name = 'gesture_gcs'

setup(
    name=package_name,
    version='1.0.0',
    packages=find_packages(exclude=['tests', 'tests.*']),
    python_requires='>=3.8',
    install_requires=[
        'setuptools',
        'numpy>=1.24',
        'opencv-python>=4.8',
    ],
    extras_require={
        'test': ['pytest>=7.0'],
    },
    zip_safe=True,
    description='Gesture-driven ground control pipeline for a simulated RC aircraft',
    license='MIT',
    entry_points={
        'console_scripts': [
            'gesture_gcs = gesture_gcs.main:main',
        ],
    },
)
