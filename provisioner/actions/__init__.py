"""
The actions the provisioner runs to prepare the install trees of boot environments.
"""
