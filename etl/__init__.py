"""
Eye-tracking ETL (Extract-Transform-Load) package

- io.py: Functions for loading fixation tables and stimulus images, and saving reports
- preprocess.py: Column naming, validation, trial selection and subject partitioning
"""
