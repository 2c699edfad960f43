"""通用工具：日志、文件系统、网络、YAML"""
