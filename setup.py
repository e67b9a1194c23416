from setuptools import setup
import io


with io.open('README.md', encoding='utf-8') as f:
    long_description = f.read()


with io.open('requirements.txt', encoding='utf-8') as f:
    requirements = [r for r in f.read().split('\n') if len(r)]


setup(name='lnpbp-invoice',
      version='0.2.0',
      description='Universal LNP/BP invoices: data model, binary and bech32m encodings',
      long_description=long_description,
      long_description_content_type='text/markdown',
      license='MIT',
      packages=['lnpbp.invoice'],
      python_requires='>=3.8',
      entry_points={
          'console_scripts': [
              'lnpbp-invoice = lnpbp.invoice.cli:main',
          ],
      },
      zip_safe=True,
      install_requires=requirements,
      extras_require={
          'test': ['pytest'],
      })
