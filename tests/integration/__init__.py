# Integration tests for a deployed KYC services stack
#
# These tests run against actual AWS resources and require:
# - AWS credentials configured
# - MYCLOUD_STACK_NAME naming a deployed MyCloud stack
#
# Run with: MYCLOUD_STACK_NAME=tdl-mycloud-dev pytest tests/integration/ -v
