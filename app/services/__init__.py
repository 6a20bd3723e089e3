# Services package for the contract service
