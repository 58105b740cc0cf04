from setuptools import find_packages, setup

package_name = 'mpc_tracking'

setup(
    name=package_name,
    version='0.1.0',
    packages=find_packages(exclude=['test']),
    data_files=[
        ('share/' + package_name + '/config', [
            'config/params.yaml',
        ]),
    ],
    python_requires='>=3.8',
    install_requires=[
        'setuptools',
        'numpy',
        'casadi',
        'PyYAML',
        'matplotlib',
    ],
    extras_require={
        'test': ['pytest'],
    },
    zip_safe=True,
    maintainer='stephen',
    maintainer_email='stephen@todo.todo',
    description='Kinematic MPC for waypoint path tracking (CasADi + Ipopt)',
    tests_require=['pytest'],
    entry_points={
        'console_scripts': [
            'mpc-simulate = mpc_tracking.run_simulation:main',
        ],
    },
)
