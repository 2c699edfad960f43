"""核心流程：清单解析 -> 目标枚举 -> 架构包流水线 -> 元包与安装脚本

模块说明:
- models.py: 数据模型
- config.py: 配置与命令行选项
- manifest.py: 发布清单解析
- variants.py: 构建目标枚举
- unpack.py: 归档流式解码
- pipeline.py: 单目标 拉取 -> 解包 -> 描述
- descriptor.py: package.json 生成
- installer.py: 安装脚本模板
- generator.py: 整体编排
"""
